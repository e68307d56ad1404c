from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import FieldSizes
from app.models.base import Base


class User(Base):
    """User record, only read by the session layer"""

    username: Mapped[str] = mapped_column(
        String(FieldSizes.USERNAME),
        unique=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(FieldSizes.EMAIL),
        unique=True,
        index=True,
        nullable=False,
    )
