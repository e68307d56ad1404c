from fastapi import Request

from app.core.config import Settings
from app.core.exceptions import http_exceptions
from app.core.tokens import TokenIssuer
from app.services.user_store import UserStore


async def get_current_user_id(request: Request) -> int | str:
    """
    Get the user id resolved by the session middleware

    Args:
        request: Incoming request

    Returns:
        The resolved user id

    Raises:
        UnauthorizedException: If no identity was established for the request
    """
    user_id = getattr(request.state, "user_id", None)

    if user_id is None:
        raise http_exceptions.UnauthorizedException(
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_id


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store
