from typing import Any, Protocol

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings
from app.core.exceptions.auth import RotationError
from app.core.tokens import ACCESS_TOKEN_SUBJECT, REFRESH_TOKEN_SUBJECT, TokenIssuer
from app.core.types import TokenPairDict
from app.core.utils import parse_record_id
from app.models.user import User
from app.repos.auth_token import AuthTokenRepo
from app.repos.user import UserRepo
from app.schemas import AuthTokenCreate


class UserStore(Protocol):
    """
    User-record store the session layer depends on.

    The store is the source of truth for whether a refresh grant is still live;
    a refresh token that verifies cryptographically can still be rejected here.
    """

    async def find_user_by_id(self, user_id: int | str) -> Any | None: ...

    async def rotate_refresh_token(
        self,
        user: Any,
        token_id: int | str,
        claimed_expiry: int | None,
        raw_refresh_token: str,
    ) -> TokenPairDict: ...

    async def revoke_refresh_token(self, token_id: int | str) -> bool: ...


class DatabaseUserStore:
    """
    SQLAlchemy backed user-record store.

    Every operation opens its own session from the factory, so one store instance
    is shared by all requests.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        token_issuer: TokenIssuer,
        access_token_expire_seconds: int = 60 * 60,
        refresh_token_expire_seconds: int = 60 * 60 * 24 * 30,
        refresh_token_renew_seconds: int = 60 * 60 * 24 * 15,
    ):
        self.session_factory = session_factory
        self.token_issuer = token_issuer
        self.access_token_expire_seconds = access_token_expire_seconds
        self.refresh_token_expire_seconds = refresh_token_expire_seconds
        self.refresh_token_renew_seconds = refresh_token_renew_seconds

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        token_issuer: TokenIssuer,
        settings: Settings,
    ) -> "DatabaseUserStore":
        return cls(
            session_factory=session_factory,
            token_issuer=token_issuer,
            access_token_expire_seconds=settings.access_token_expire_seconds,
            refresh_token_expire_seconds=settings.refresh_token_expire_seconds,
            refresh_token_renew_seconds=settings.refresh_token_renew_seconds,
        )

    def create_access_token(self, user_id: int | str) -> str:
        return self.token_issuer.create_token(
            {"user_id": user_id},
            subject=ACCESS_TOKEN_SUBJECT,
            expires_in=self.access_token_expire_seconds,
        )

    def create_refresh_token(self, user_id: int | str, token_id: int | str) -> str:
        return self.token_issuer.create_token(
            {"user_id": user_id, "token_id": token_id},
            subject=REFRESH_TOKEN_SUBJECT,
            expires_in=self.refresh_token_expire_seconds,
        )

    async def find_user_by_id(self, user_id: int | str) -> User | None:
        record_id = parse_record_id(user_id)
        if record_id is None:
            return None

        async with self.session_factory() as session:
            return await UserRepo(session).get_by_id(record_id)

    async def issue_user_tokens(self, user: User) -> TokenPairDict:
        """
        Create a new refresh grant for the user and sign a token pair for it.

        Args:
            user: The authenticated user.

        Returns:
            TokenPairDict with access and refresh tokens.
        """
        async with self.session_factory() as session:
            grant = await AuthTokenRepo(session).create_one(AuthTokenCreate(user_id=user.id))

        logger.info(f"Issued refresh grant {grant.id} for user {user.id}")

        return TokenPairDict(
            access_token=self.create_access_token(user.id),
            refresh_token=self.create_refresh_token(user.id, grant.id),
        )

    async def rotate_refresh_token(
        self,
        user: User,
        token_id: int | str,
        claimed_expiry: int | None,
        raw_refresh_token: str,
    ) -> TokenPairDict:
        """
        Exchange a refresh token for a fresh access token.

        The refresh token itself is only re-signed once less than
        `refresh_token_renew_seconds` of its life is left; otherwise the
        presented token is handed back unchanged.

        Args:
            user: Owner of the refresh token.
            token_id: Grant id carried by the refresh token.
            claimed_expiry: The refresh token's `exp` claim, None if it never expires.
            raw_refresh_token: The refresh token as presented by the client.

        Returns:
            TokenPairDict with the new access token and the current refresh token.

        Raises:
            RotationError: If the grant is unknown, disabled or owned by another user.
        """
        grant_id = parse_record_id(token_id)
        if grant_id is None:
            raise RotationError("Refresh token grant is unknown")

        async with self.session_factory() as session:
            repo = AuthTokenRepo(session)
            grant = await repo.get_live_grant(grant_id, user.id)

            if grant is None:
                raise RotationError("Refresh token grant is revoked or unknown")

            await repo.touch(grant.id)

        refresh_token = raw_refresh_token
        now = self.token_issuer.clock().timestamp()

        if claimed_expiry is not None and claimed_expiry - now < self.refresh_token_renew_seconds:
            refresh_token = self.create_refresh_token(user.id, grant.id)
            logger.debug(f"Renewed refresh token for grant {grant.id}")

        return TokenPairDict(
            access_token=self.create_access_token(user.id),
            refresh_token=refresh_token,
        )

    async def revoke_refresh_token(self, token_id: int | str) -> bool:
        """Disable a refresh grant; returns whether a grant was found"""
        grant_id = parse_record_id(token_id)
        if grant_id is None:
            return False

        async with self.session_factory() as session:
            updated = await AuthTokenRepo(session).disable(grant_id)

        if updated:
            logger.info(f"Revoked refresh grant {grant_id}")

        return bool(updated)
