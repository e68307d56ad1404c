from pydantic import ConfigDict, Field

from app.schemas.base import BaseSchema


class AccessTokenClaims(BaseSchema):
    """Claims carried by an access token, keyed by the registered JWT names"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    issued_at: int = Field(alias="iat")
    # Absent for tokens signed with an explicitly empty expiry
    expires_at: int | None = Field(default=None, alias="exp")
    subject: str | None = Field(default=None, alias="sub")
    issuer: str = Field(alias="iss")
    user_id: int | str


class RefreshTokenClaims(AccessTokenClaims):
    """Claims carried by a refresh token, tied to a persisted grant"""

    token_id: int | str


class AuthTokenCreate(BaseSchema):
    """Refresh grant creation schema"""

    user_id: int


class SessionResponse(BaseSchema):
    """Identity resolved for the current request"""

    user_id: int | str
