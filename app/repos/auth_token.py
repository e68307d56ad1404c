from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.auth_token import AuthToken
from app.repos.base import BaseRepository
from app.schemas import AuthTokenCreate


class AuthTokenRepo(BaseRepository[AuthToken, AuthTokenCreate]):
    def __init__(self, session: AsyncSession):
        """Refresh grant repository"""
        super().__init__(session, AuthToken)

    async def get_live_grant(self, token_id: int, user_id: int) -> AuthToken | None:
        """
        Get a grant that belongs to the user and has not been disabled

        Args:
            token_id (int): The grant id carried by the refresh token.
            user_id (int): The user the refresh token was issued to.

        Returns:
            AuthToken | None: The grant if it is still live, else None.
        """
        grant = await self.get_by_id(token_id)

        if grant is None or grant.user_id != user_id or grant.disabled:
            return None

        return grant

    async def touch(self, token_id: int) -> int:
        return await self.update_values_by_id(token_id, {"updated_at": func.now()})

    async def disable(self, token_id: int) -> int:
        return await self.update_values_by_id(token_id, {"disabled": True})
