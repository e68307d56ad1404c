from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from loguru import logger

from app.api.v1.deps.auth import (
    get_current_user_id,
    get_settings,
    get_token_issuer,
    get_user_store,
)
from app.core.config import Settings
from app.core.cookies import clear_token_cookies, extract_refresh_token
from app.core.exceptions.base import AppException
from app.core.tokens import TokenIssuer
from app.schemas import SessionResponse
from app.services.user_store import UserStore

router = APIRouter()


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Current session",
    description="Return the user id resolved from the session cookies or epicAuth header.",
)
async def read_session(user_id: Annotated[int | str, Depends(get_current_user_id)]):
    return {"user_id": user_id}


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout",
    description="Revoke the refresh grant of the current session and clear the auth cookies.",
)
async def logout(
    request: Request,
    response: Response,
    app_settings: Annotated[Settings, Depends(get_settings)],
    token_issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    user_store: Annotated[UserStore, Depends(get_user_store)],
):
    refresh_token = extract_refresh_token(request)

    if refresh_token:
        try:
            claims = token_issuer.decode_refresh_token(refresh_token)
        except AppException as e:
            logger.debug(f"Logout with unusable refresh token: {e.message}")
        else:
            await user_store.revoke_refresh_token(claims.token_id)

    clear_token_cookies(response, app_settings)
