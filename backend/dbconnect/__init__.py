"""
dbconnect - schema-governed document collections in per-tenant MongoDB databases.
"""
__version__ = "1.0.0"
