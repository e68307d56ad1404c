from datetime import timedelta

from loguru import logger

from app.core.config import Settings
from app.core.exceptions.auth import UnknownUserError
from app.core.exceptions.base import AppException
from app.core.tokens import TokenIssuer
from app.schemas import (
    AccessTokenClaims,
    Authenticated,
    RotationResult,
    SessionResult,
    Unauthenticated,
)
from app.services.user_store import UserStore

DEFAULT_REFRESH_THRESHOLD = timedelta(minutes=30)


class SessionService:
    """
    Resolves the caller's identity from access/refresh tokens.

    Receives the token issuer and the user-record store via constructor. Resolution
    never raises for authentication failures: the outcome is returned as either
    Authenticated or Unauthenticated and the request continues regardless.
    """

    def __init__(
        self,
        token_issuer: TokenIssuer,
        user_store: UserStore,
        refresh_threshold: timedelta = DEFAULT_REFRESH_THRESHOLD,
    ):
        self.token_issuer = token_issuer
        self.user_store = user_store
        self.refresh_threshold = refresh_threshold

    @classmethod
    def from_settings(
        cls,
        token_issuer: TokenIssuer,
        user_store: UserStore,
        settings: Settings,
    ) -> "SessionService":
        return cls(
            token_issuer=token_issuer,
            user_store=user_store,
            refresh_threshold=timedelta(seconds=settings.access_token_refresh_threshold_seconds),
        )

    async def rotate(self, refresh_token: str) -> RotationResult:
        """
        Exchange a refresh token for a new token pair.

        Args:
            refresh_token: Refresh token string presented by the client.

        Returns:
            RotationResult with the refresh token's user id and the new tokens.

        Raises:
            VerificationError: If the refresh token does not verify.
            UnknownUserError: If the token's user no longer exists.
            RotationError: If the store rejects the grant.
        """
        claims = self.token_issuer.decode_refresh_token(refresh_token)

        user = await self.user_store.find_user_by_id(claims.user_id)
        if user is None:
            raise UnknownUserError(f"User {claims.user_id} does not exist")

        tokens = await self.user_store.rotate_refresh_token(
            user,
            claims.token_id,
            claims.expires_at,
            refresh_token,
        )
        logger.debug(f"Rotated refresh grant {claims.token_id} for user {claims.user_id}")

        return RotationResult(user_id=claims.user_id, tokens=tokens)

    async def resolve(
        self,
        access_token: str | None,
        refresh_token: str | None,
    ) -> SessionResult:
        """
        Resolve the identity for one request.

        A valid access token wins. When it expires within the refresh threshold
        and a refresh token is present, a rotation is attempted; its failure keeps
        the access token's identity. Without a valid access token the refresh
        token is rotated and its user becomes the identity.

        Args:
            access_token: Access token from cookie or header, if any.
            refresh_token: Refresh token cookie, if any.

        Returns:
            Authenticated with the user id (and rotated tokens when new cookies
            must be set), or Unauthenticated with the reason.
        """
        if access_token:
            try:
                claims = self.token_issuer.decode_access_token(access_token)
            except AppException as e:
                logger.debug(f"Access token rejected: {e.message}")
            else:
                return await self._resolve_access_token(claims, refresh_token)

        if not refresh_token:
            reason = "invalid access token" if access_token else "no credentials"
            return Unauthenticated(reason=reason)

        try:
            rotation = await self.rotate(refresh_token)
        except AppException as e:
            logger.debug(f"Refresh token rotation failed: {e.message}")
            return Unauthenticated(reason=e.message)

        return Authenticated(user_id=rotation.user_id, tokens=rotation.tokens)

    async def _resolve_access_token(
        self,
        claims: AccessTokenClaims,
        refresh_token: str | None,
    ) -> Authenticated:
        if claims.expires_at is None or not refresh_token:
            return Authenticated(user_id=claims.user_id)

        time_to_expiry = claims.expires_at - self.token_issuer.clock().timestamp()
        if time_to_expiry >= self.refresh_threshold.total_seconds():
            return Authenticated(user_id=claims.user_id)

        try:
            rotation = await self.rotate(refresh_token)
        except AppException as e:
            logger.debug(f"Proactive rotation failed, keeping access token: {e.message}")
            return Authenticated(user_id=claims.user_id)

        return Authenticated(user_id=claims.user_id, tokens=rotation.tokens)
