"""Persistence for user accounts."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId

from catalog.clients import USERS, MongoDBClient
from catalog.errors import ConflictError
from catalog.models.user import User, UserRole

logger = logging.getLogger(__name__)


class UserStore:
    """Reads and writes user documents.

    The store never caches: every lookup goes to the database so a bumped
    token_version takes effect on the very next request.
    """

    def __init__(self, client: MongoDBClient):
        self._client = client

    async def create(self, name: str, email: str, password_hash: str, role: UserRole) -> User:
        """Insert a new user with token_version 0.

        Raises:
            ConflictError: If the email is already registered.
        """
        now = datetime.now(timezone.utc)
        document = {
            "name": name,
            "email": email,
            "password_hash": password_hash,
            "role": role.value,
            "token_version": 0,
            "created_at": now,
            "updated_at": now,
        }
        try:
            stored = await self._client.insert_one(USERS, document)
        except ConflictError as e:
            raise ConflictError("User with this email already exists") from e
        return User.from_document(stored)

    async def find_by_id(self, user_id: ObjectId) -> Optional[User]:
        doc = await self._client.find_one(USERS, {"_id": user_id})
        return User.from_document(doc) if doc else None

    async def find_by_email(self, email: str) -> Optional[User]:
        doc = await self._client.find_one(USERS, {"email": email})
        return User.from_document(doc) if doc else None

    async def email_taken(self, email: str, exclude_id: Optional[ObjectId] = None) -> bool:
        predicate: dict[str, Any] = {"email": email}
        if exclude_id is not None:
            predicate["_id"] = {"$ne": exclude_id}
        return await self._client.find_one(USERS, predicate) is not None

    async def update_fields(self, user_id: ObjectId, fields: dict[str, Any]) -> Optional[User]:
        """Set the given fields and refresh updated_at."""
        update = {"$set": {**fields, "updated_at": datetime.now(timezone.utc)}}
        try:
            doc = await self._client.find_one_and_update(USERS, {"_id": user_id}, update)
        except ConflictError as e:
            raise ConflictError("Email is already taken by another user") from e
        return User.from_document(doc) if doc else None

    async def set_password(self, user_id: ObjectId, password_hash: str) -> Optional[User]:
        """Replace the credential and invalidate every outstanding token."""
        update = {
            "$set": {"password_hash": password_hash, "updated_at": datetime.now(timezone.utc)},
            "$inc": {"token_version": 1},
        }
        doc = await self._client.find_one_and_update(USERS, {"_id": user_id}, update)
        return User.from_document(doc) if doc else None

    async def increment_token_version(self, user_id: ObjectId) -> Optional[User]:
        """Atomically bump token_version, revoking all previously issued tokens."""
        update = {
            "$inc": {"token_version": 1},
            "$set": {"updated_at": datetime.now(timezone.utc)},
        }
        doc = await self._client.find_one_and_update(USERS, {"_id": user_id}, update)
        if doc:
            logger.info(f"Token version for user {user_id} bumped to {doc['token_version']}")
        return User.from_document(doc) if doc else None
