"""FastAPI application setup."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog.api.controller import product_router, user_router
from catalog.auth.tokens import TokenService
from catalog.clients import MongoDBClient
from catalog.config.configuration import AppConfig, get_config
from catalog.errors import CatalogError, ErrorKind, ValidationError
from catalog.services import ProductService, UserService, UserStore

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.NOT_FOUND_OR_FORBIDDEN: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


def wire_services(app: FastAPI, client: MongoDBClient, config: AppConfig) -> None:
    """Attach the service graph to app.state."""
    tokens = TokenService(
        secret=config.auth.jwt_secret,
        algorithm=config.auth.algorithm,
        ttl=timedelta(minutes=config.auth.token_ttl_minutes),
    )
    user_store = UserStore(client)

    app.state.auth_config = config.auth
    app.state.token_service = tokens
    app.state.user_store = user_store
    app.state.user_service = UserService(user_store, tokens, bcrypt_rounds=config.auth.bcrypt_rounds)
    app.state.product_service = ProductService(client)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    config = get_config()
    client = MongoDBClient(
        uri=config.mongodb.uri,
        database_name=config.mongodb.database_name,
        server_selection_timeout_ms=config.mongodb.server_selection_timeout_ms,
    )
    await client.connect()
    await client.ensure_indexes()
    wire_services(app, client, config)
    try:
        yield
    finally:
        await client.close()
        logger.info("MongoDB connection closed")


async def handle_catalog_error(request: Request, exc: CatalogError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    body: dict = {"success": False, "message": exc.message}

    if exc.kind is ErrorKind.INTERNAL:
        logger.error(f"Internal error on {request.method} {request.url.path}: {exc.message}")
        body["message"] = "Internal server error"
    elif isinstance(exc, ValidationError) and exc.details:
        body["errors"] = exc.details

    return JSONResponse(status_code=status_code, content=body)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request", "errors": errors},
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


def create_app(with_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        with_lifespan: Connect to MongoDB on startup. Tests that provide
            their own services on app.state pass False.
    """
    app = FastAPI(
        title="Product Catalog API",
        description="Multi-tenant product catalog with per-owner statistics",
        version="1.0.0",
        lifespan=lifespan if with_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production: specify the frontend origin
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CatalogError, handle_catalog_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)

    # Include routers
    app.include_router(user_router)
    app.include_router(product_router)

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
