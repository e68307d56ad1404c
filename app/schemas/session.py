from typing import Literal

from app.core.types import TokenPairDict
from app.schemas.base import BaseSchema


class RotationResult(BaseSchema):
    """Outcome of a successful refresh token rotation"""

    user_id: int | str
    tokens: TokenPairDict


class Authenticated(BaseSchema):
    """
    Identity resolved for a request.

    `tokens` is set when a rotation happened and new cookies must be written.
    """

    status: Literal["authenticated"] = "authenticated"
    user_id: int | str
    tokens: TokenPairDict | None = None

    @property
    def rotated(self) -> bool:
        return self.tokens is not None


class Unauthenticated(BaseSchema):
    """No identity could be established; the request continues anonymously"""

    status: Literal["unauthenticated"] = "unauthenticated"
    reason: str
    user_id: None = None
    tokens: None = None

    @property
    def rotated(self) -> bool:
        return False


SessionResult = Authenticated | Unauthenticated
