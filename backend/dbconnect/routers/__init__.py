"""
API routers.
"""
from dbconnect.routers import auth, collections

__all__ = ["auth", "collections"]
