from fastapi import FastAPI
from fastapi.concurrency import asynccontextmanager
from loguru import logger

from app.api.routes import api_router
from app.core.config import Environment, Settings, settings
from app.core.db import async_session_factory, engine
from app.core.logger import configure_uvicorn_logging, setup_logger, shutdown_logger
from app.core.tokens import TokenIssuer
from app.middleware.logging import LoggingMiddleware
from app.middleware.session import SessionMiddleware
from app.services.session_service import SessionService
from app.services.user_store import DatabaseUserStore, UserStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""

    setup_logger()
    configure_uvicorn_logging()

    if not app.state.token_issuer.is_configured:
        logger.warning("Running without a secret key, every request will be anonymous.")

    logger.success("Resources initialized.")

    yield  # Application runs here

    logger.info("Cleaning up resources...")
    await engine.dispose()
    shutdown_logger()


ALLOWED_ENVIRONMENTS = {Environment.LOCAL, Environment.DEV, Environment.STG}


def create_app(
    app_settings: Settings = settings,
    token_issuer: TokenIssuer | None = None,
    user_store: UserStore | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Application settings
        token_issuer: Token issuer, built from settings when omitted
        user_store: User-record store, database backed when omitted

    Returns:
        The configured application

    Raises:
        ConfigurationError: If the secret key is missing outside schema migration mode
    """
    if token_issuer is None:
        token_issuer = TokenIssuer.from_settings(app_settings)

    if user_store is None:
        user_store = DatabaseUserStore.from_settings(
            async_session_factory, token_issuer, app_settings
        )

    session_service = SessionService.from_settings(token_issuer, user_store, app_settings)

    docs_enabled = app_settings.current_environment in ALLOWED_ENVIRONMENTS

    app = FastAPI(
        title=app_settings.app_title,
        version=app_settings.app_version,
        description=app_settings.app_description,
        openapi_url="/openapi.json" if docs_enabled else None,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        lifespan=lifespan,
        generate_unique_id_function=lambda route: f"{route.tags[0]}-{route.name}",
    )

    app.state.settings = app_settings
    app.state.token_issuer = token_issuer
    app.state.user_store = user_store
    app.state.session_service = session_service

    # Resolve the session for every request
    app.add_middleware(
        SessionMiddleware,
        session_service=session_service,
        app_settings=app_settings,
    )

    # Set logging middleware (outermost, so the request id covers session resolution)
    app.add_middleware(LoggingMiddleware)

    app.include_router(api_router)

    return app
