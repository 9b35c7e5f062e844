"""Account use cases: registration, login, profile and session revocation."""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Mapping

from catalog.auth.passwords import DEFAULT_ROUNDS, hash_password, verify_password
from catalog.auth.tokens import TokenService
from catalog.errors import AuthenticationError, AuthFailure, ConflictError, NotFoundOrForbidden, ValidationError
from catalog.models.user import (
    LoginRequest,
    PasswordChange,
    Principal,
    ProfileUpdate,
    RegisterRequest,
    User,
)
from catalog.models.validation import validate_model
from catalog.services.identity_store import UserStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """A user together with a freshly issued token."""

    user: User
    token: str


class UserService:
    """Account operations. bcrypt work runs off the event loop."""

    def __init__(self, users: UserStore, tokens: TokenService, bcrypt_rounds: int = DEFAULT_ROUNDS):
        self._users = users
        self._tokens = tokens
        self._bcrypt_rounds = bcrypt_rounds
        # Unknown emails are verified against this hash
        self._dummy_hash = hash_password(secrets.token_urlsafe(16), bcrypt_rounds)

    def _issue(self, user: User) -> str:
        return self._tokens.issue_token(user.id, user.email, user.role, user.token_version)

    async def _hash(self, plaintext: str) -> str:
        return await asyncio.to_thread(hash_password, plaintext, self._bcrypt_rounds)

    async def _verify(self, plaintext: str, credential: str) -> bool:
        return await asyncio.to_thread(verify_password, plaintext, credential)

    async def _require_user(self, principal: Principal) -> User:
        user = await self._users.find_by_id(principal.id)
        if user is None:
            raise NotFoundOrForbidden("User not found")
        return user

    async def register(self, data: Mapping[str, Any]) -> AuthResult:
        """Create an account and log it in.

        Raises:
            ValidationError: If name, email or password are invalid.
            ConflictError: If the email is already registered.
        """
        request = validate_model(RegisterRequest, data, message="Invalid registration")

        if await self._users.find_by_email(request.email):
            raise ConflictError("User with this email already exists")

        password_hash = await self._hash(request.password)
        user = await self._users.create(request.name, request.email, password_hash, request.role)
        logger.info(f"Registered user {user.id}")
        return AuthResult(user=user, token=self._issue(user))

    async def login(self, data: Mapping[str, Any]) -> AuthResult:
        """Check credentials and issue a token.

        Unknown email and wrong password fail identically, and both cost one
        bcrypt verification.
        """
        request = validate_model(LoginRequest, data, message="Email and password are required")

        user = await self._users.find_by_email(request.email)
        credential = user.password_hash if user is not None else self._dummy_hash
        matches = await self._verify(request.password, credential)
        if user is None or not matches:
            raise AuthenticationError(AuthFailure.INVALID_CREDENTIALS, "Invalid email or password")
        return AuthResult(user=user, token=self._issue(user))

    async def get_profile(self, principal: Principal) -> User:
        return await self._require_user(principal)

    async def update_profile(self, principal: Principal, data: Mapping[str, Any]) -> User:
        """Change name and/or email.

        Raises:
            ValidationError: If the patch is empty or invalid.
            ConflictError: If the new email belongs to another user.
        """
        patch = validate_model(ProfileUpdate, data, message="Invalid profile update")
        fields = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}
        if not fields:
            raise ValidationError("No profile changes provided")

        if "email" in fields and await self._users.email_taken(fields["email"], exclude_id=principal.id):
            raise ConflictError("Email is already taken by another user")

        user = await self._users.update_fields(principal.id, fields)
        if user is None:
            raise NotFoundOrForbidden("User not found")
        logger.info(f"Updated profile for user {user.id}")
        return user

    async def change_password(self, principal: Principal, data: Mapping[str, Any]) -> AuthResult:
        """Replace the password after checking the current one.

        Every previously issued token is revoked; the returned token is valid
        for the caller's current session.
        """
        request = validate_model(PasswordChange, data, message="Invalid password change")
        user = await self._require_user(principal)

        if not await self._verify(request.current_password, user.password_hash):
            raise ValidationError(
                "Current password is incorrect",
                details=[{"field": "current_password", "message": "does not match"}],
            )

        updated = await self._users.set_password(user.id, await self._hash(request.new_password))
        if updated is None:
            raise NotFoundOrForbidden("User not found")
        logger.info(f"Password changed for user {updated.id}")
        return AuthResult(user=updated, token=self._issue(updated))

    async def logout_all_devices(self, principal: Principal) -> None:
        """Revoke every token issued to this user so far."""
        if await self._users.increment_token_version(principal.id) is None:
            raise NotFoundOrForbidden("User not found")
        logger.info(f"User {principal.id} logged out from all devices")
