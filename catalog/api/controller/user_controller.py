"""HTTP routes for account management."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Response

from catalog.api.dependencies import get_auth_config, get_principal, get_user_service
from catalog.config.configuration import AuthConfig
from catalog.models.user import Principal
from catalog.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


def _set_token_cookie(response: Response, token: str, auth_config: AuthConfig) -> None:
    response.set_cookie(
        key=auth_config.cookie_name,
        value=token,
        max_age=auth_config.token_ttl_minutes * 60,
        httponly=True,
        secure=auth_config.cookie_secure,
        samesite="strict",
    )


def _clear_token_cookie(response: Response, auth_config: AuthConfig) -> None:
    response.delete_cookie(
        key=auth_config.cookie_name,
        httponly=True,
        secure=auth_config.cookie_secure,
        samesite="strict",
    )


@router.post("/register", status_code=201)
async def register(
    response: Response,
    payload: dict[str, Any] = Body(...),
    users: UserService = Depends(get_user_service),
    auth_config: AuthConfig = Depends(get_auth_config),
) -> dict:
    result = await users.register(payload)
    _set_token_cookie(response, result.token, auth_config)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": result.user.to_profile(),
        "token": result.token,
    }


@router.post("/login")
async def login(
    response: Response,
    payload: dict[str, Any] = Body(...),
    users: UserService = Depends(get_user_service),
    auth_config: AuthConfig = Depends(get_auth_config),
) -> dict:
    result = await users.login(payload)
    _set_token_cookie(response, result.token, auth_config)
    return {
        "success": True,
        "message": "Login successful",
        "data": result.user.to_profile(),
        "token": result.token,
    }


@router.post("/logout")
async def logout(
    response: Response,
    auth_config: AuthConfig = Depends(get_auth_config),
) -> dict:
    _clear_token_cookie(response, auth_config)
    return {"success": True, "message": "Logout successful"}


@router.post("/logout-all")
async def logout_all_devices(
    response: Response,
    principal: Principal = Depends(get_principal),
    users: UserService = Depends(get_user_service),
    auth_config: AuthConfig = Depends(get_auth_config),
) -> dict:
    await users.logout_all_devices(principal)
    _clear_token_cookie(response, auth_config)
    return {"success": True, "message": "Logged out from all devices successfully"}


@router.get("/profile")
async def get_profile(
    principal: Principal = Depends(get_principal),
    users: UserService = Depends(get_user_service),
) -> dict:
    user = await users.get_profile(principal)
    return {"success": True, "data": user.to_profile()}


@router.put("/profile")
async def update_profile(
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    users: UserService = Depends(get_user_service),
) -> dict:
    user = await users.update_profile(principal, payload)
    return {"success": True, "message": "Profile updated successfully", "data": user.to_profile()}


@router.put("/change-password")
async def change_password(
    response: Response,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    users: UserService = Depends(get_user_service),
    auth_config: AuthConfig = Depends(get_auth_config),
) -> dict:
    result = await users.change_password(principal, payload)
    # Older tokens are now revoked; keep this session alive with a new one
    _set_token_cookie(response, result.token, auth_config)
    return {"success": True, "message": "Password changed successfully", "token": result.token}
