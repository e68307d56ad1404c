from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repos.base import BaseRepository
from app.schemas import BaseSchema


class UserRepo(BaseRepository[User, BaseSchema]):
    def __init__(self, session: AsyncSession):
        """User repository for database operations"""
        super().__init__(session, User)
