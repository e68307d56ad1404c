from sqlalchemy import BigInteger, Boolean, ForeignKey, false
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class AuthToken(Base):
    """Server side refresh grant; a refresh token's token_id points here"""

    user_id: Mapped[int] = mapped_column(
        BigInteger(),
        ForeignKey("user.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    disabled: Mapped[bool] = mapped_column(
        Boolean(),
        default=False,
        server_default=false(),
        nullable=False,
    )
