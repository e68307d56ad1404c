from .base import BaseSchema
from .health_check import HealthCheckResponse
from .token import AccessTokenClaims, AuthTokenCreate, RefreshTokenClaims, SessionResponse
from .session import Authenticated, RotationResult, SessionResult, Unauthenticated

__all__ = [
    "BaseSchema",
    "HealthCheckResponse",
    "AccessTokenClaims",
    "RefreshTokenClaims",
    "AuthTokenCreate",
    "SessionResponse",
    "Authenticated",
    "Unauthenticated",
    "RotationResult",
    "SessionResult",
]
