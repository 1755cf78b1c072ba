"""
Service layer: schema catalog, validation, collections, documents and access control.
"""
