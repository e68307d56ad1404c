from typing import Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.config import Settings, settings
from app.core.cookies import (
    ACCESS_TOKEN_COOKIE,
    extract_access_token,
    extract_refresh_token,
    set_token_cookies,
)
from app.core.logger import user_id_var
from app.schemas import SessionResult, Unauthenticated
from app.services.session_service import SessionService


def _sets_token_cookies(response: Response) -> bool:
    """Whether the handler already wrote the auth cookies itself (login, logout)"""
    prefix = f"{ACCESS_TOKEN_COOKIE}="
    return any(
        value.decode("latin-1").startswith(prefix)
        for key, value in response.raw_headers
        if key == b"set-cookie"
    )


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Resolves the caller's identity before the request reaches its handler.

    The resolved user id is stored on `request.state.user_id` (None for anonymous
    requests) and the full outcome on `request.state.session`. The handler chain
    always runs; when the access token was rotated, the new token pair is written
    to the response as cookies unless the handler already set them.
    """

    def __init__(
        self,
        app: ASGIApp,
        session_service: SessionService,
        app_settings: Settings = settings,
    ):
        super().__init__(app)
        self.session_service = session_service
        self.settings = app_settings

    async def _resolve(self, request: Request) -> SessionResult:
        access_token = extract_access_token(request)
        refresh_token = extract_refresh_token(request)

        try:
            return await self.session_service.resolve(access_token, refresh_token)
        except Exception as e:
            # Store outages must not block the request; it continues anonymously
            logger.exception(f"Session resolution failed on {request.url.path}: {e}")
            return Unauthenticated(reason="session resolution failed")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        result = await self._resolve(request)

        request.state.user_id = result.user_id
        request.state.session = result

        token = user_id_var.set(result.user_id)
        try:
            response: Response = await call_next(request)
        finally:
            user_id_var.reset(token)

        if result.tokens and not _sets_token_cookies(response):
            set_token_cookies(response, result.tokens, self.settings)
            logger.debug(f"Rotated session cookies for user {result.user_id}")

        return response
