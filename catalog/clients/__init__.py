"""Client modules for external services."""

from catalog.clients.mongodb_client import PRODUCTS, USERS, MongoDBClient

__all__ = [
    "MongoDBClient",
    "PRODUCTS",
    "USERS",
]
