"""Resolve a bearer token to an authenticated principal."""

import logging
from typing import Optional

from catalog.auth.tokens import TokenService
from catalog.errors import AuthenticationError, AuthFailure
from catalog.models.user import Principal
from catalog.services.identity_store import UserStore

logger = logging.getLogger(__name__)


async def authenticate(
    token: Optional[str],
    tokens: TokenService,
    users: UserStore,
) -> Principal:
    """
    Validate a token and resolve it against the current user record.

    The user is re-read on every call; the token's embedded version must
    match the stored token_version.

    Args:
        token: Raw token string from the request, if any.
        tokens: Service that verifies signatures and expiry.
        users: Store used for the fresh user lookup.

    Returns:
        The authenticated principal.

    Raises:
        AuthenticationError: With reason NO_TOKEN, MALFORMED, EXPIRED,
            USER_NOT_FOUND or REVOKED.
    """
    if not token:
        raise AuthenticationError(AuthFailure.NO_TOKEN, "Access denied. No token provided.")

    try:
        claims = tokens.verify_token(token)
    except AuthenticationError as e:
        logger.warning(f"Token rejected: {e.reason.value}")
        raise

    user = await users.find_by_id(claims.user_id)
    if user is None:
        logger.warning(f"Token rejected: user {claims.user_id} no longer exists")
        raise AuthenticationError(AuthFailure.USER_NOT_FOUND)

    if user.token_version != claims.token_version:
        logger.warning(f"Token rejected: revoked token for user {user.id}")
        raise AuthenticationError(AuthFailure.REVOKED, "Token has been revoked. Please login again.")

    return Principal(id=user.id, email=user.email, role=user.role)
