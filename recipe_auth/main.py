import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from recipe_auth.api.v1.auth_route import auth_router
from recipe_auth.core.config import Settings, get_settings
from recipe_auth.core.errors import AuthError
from recipe_auth.core.security import TokenIssuer
from recipe_auth.db.session import build_engine, build_session_factory, init_db


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Creates database tables and the shared HTTP client on startup, and
    releases both on shutdown.
    """
    await init_db(app.state.engine)

    owns_http_client = app.state.http_client is None
    if owns_http_client:
        app.state.http_client = httpx.AsyncClient()

    yield

    if owns_http_client:
        await app.state.http_client.aclose()
        app.state.http_client = None
    await app.state.engine.dispose()


def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"success": false, "message": ...}``."""

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return _error_response(404, f"API endpoint {request.url.path} not found")
        return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0]["msg"] if errors else "Invalid request body"
        return _error_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Sets up logging, the database engine, the token issuer, CORS, error
    handlers and routing for the authentication endpoints.

    Args:
        settings: Settings to use instead of the environment.
        http_client: Client for outbound calls to Google; one is created
            on startup when omitted.

    Returns:
        FastAPI: Configured FastAPI application instance.

    Raises:
        ConfigurationError: If JWT_SECRET is missing or invalid.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Fails before serving anything when the signing secret is absent
    token_issuer = TokenIssuer.from_settings(settings)

    if not settings.google_oauth_enabled:
        logger.warning("GOOGLE_CLIENT_ID is not set; Google sign-in is disabled")

    app = FastAPI(
        title=settings.app_name,
        description="Authentication and identity service for the recipe app",
        version="1.0.0",
        lifespan=lifespan,
    )

    engine = build_engine(settings.database_url, echo=settings.database_echo)
    app.state.settings = settings
    app.state.token_issuer = token_issuer
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.http_client = http_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router, prefix="/auth", tags=["auth"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.

        Returns:
            dict: Health status response.
        """
        return {"status": "healthy"}

    @app.get("/")
    async def root():
        return {"message": settings.app_name}

    return app
