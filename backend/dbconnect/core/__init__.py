"""
Core module - errors, security and response helpers.
"""
from dbconnect.core.security import (
    create_access_token,
    create_action_token,
    decode_token,
)

__all__ = [
    "create_access_token",
    "create_action_token",
    "decode_token",
]
