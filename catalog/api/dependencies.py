"""FastAPI dependencies: service lookup and request authentication."""

from typing import Optional

from fastapi import Depends, Request

from catalog.auth.access import authenticate
from catalog.auth.tokens import TokenService
from catalog.config.configuration import AuthConfig
from catalog.models.user import Principal
from catalog.services.identity_store import UserStore
from catalog.services.product_service import ProductService
from catalog.services.user_service import UserService


def get_auth_config(request: Request) -> AuthConfig:
    return request.app.state.auth_config


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service


def extract_token(request: Request, cookie_name: str) -> Optional[str]:
    """Read the token from an Authorization: Bearer header, else the cookie."""
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(cookie_name)


async def get_principal(
    request: Request,
    auth_config: AuthConfig = Depends(get_auth_config),
    tokens: TokenService = Depends(get_token_service),
    users: UserStore = Depends(get_user_store),
) -> Principal:
    """Authenticate the request; raises AuthenticationError on failure."""
    return await authenticate(extract_token(request, auth_config.cookie_name), tokens, users)
