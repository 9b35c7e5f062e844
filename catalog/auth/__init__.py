"""Credential hashing, token handling and request authentication."""

from catalog.auth.passwords import hash_password, verify_password
from catalog.auth.tokens import TokenClaims, TokenService
from catalog.auth.access import authenticate

__all__ = [
    "TokenClaims",
    "TokenService",
    "authenticate",
    "hash_password",
    "verify_password",
]
