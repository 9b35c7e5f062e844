"""Signed bearer tokens bound to a per-user token version."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from bson import ObjectId
from bson.errors import InvalidId

from catalog.errors import AuthenticationError, AuthFailure
from catalog.models.user import Principal, UserRole

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=1)


@dataclass(frozen=True)
class TokenClaims:
    """Decoded token contents."""

    user_id: ObjectId
    email: str
    role: UserRole
    token_version: int
    expires_at: datetime

    @property
    def principal(self) -> Principal:
        return Principal(id=self.user_id, email=self.email, role=self.role)


class TokenService:
    """Issues and verifies HMAC-signed JWTs.

    Each token embeds the user's token_version at issuance; comparing it with
    the stored value on every request is what makes logout-all-devices work.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = DEFAULT_TTL):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl

    def issue_token(
        self,
        user_id: ObjectId,
        email: str,
        role: UserRole,
        token_version: int,
        ttl: Optional[timedelta] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role.value,
            "tv": token_version,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self._ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify_token(self, token: str) -> TokenClaims:
        """Verify signature and expiry and decode the claims.

        Raises:
            AuthenticationError: EXPIRED past expiry, MALFORMED for anything
                else wrong with the token.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "tv"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError(AuthFailure.EXPIRED, "Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(AuthFailure.MALFORMED, "Invalid token") from e

        try:
            version = payload["tv"]
            if not isinstance(version, int) or isinstance(version, bool):
                raise ValueError("token version must be an integer")
            return TokenClaims(
                user_id=ObjectId(payload["sub"]),
                email=str(payload.get("email", "")),
                role=UserRole(payload.get("role", UserRole.USER.value)),
                token_version=version,
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (InvalidId, TypeError, ValueError) as e:
            logger.debug(f"Rejected token with invalid claims: {e}")
            raise AuthenticationError(AuthFailure.MALFORMED, "Invalid token") from e
