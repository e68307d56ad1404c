from fastapi import APIRouter, status

from app.api.v1.endpoints import auth

api_v1_router = APIRouter(prefix="/api/v1")


api_v1_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Auth"],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"description": "No identity was resolved for the request"},
    },
)
