from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Mapping

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError, JWTClaimsError, JWTError
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from app.core.config import Settings
from app.core.exceptions.auth import ConfigurationError, SigningError, VerificationError
from app.schemas import AccessTokenClaims, RefreshTokenClaims

DEFAULT_ISSUER = ".epiclo.io"
DEFAULT_EXPIRES_IN = timedelta(days=7)

ACCESS_TOKEN_SUBJECT = "access_token"
REFRESH_TOKEN_SUBJECT = "refresh_token"

# Marker for "use the issuer default"; an explicit None means "never expires"
USE_DEFAULT_EXPIRY: Any = object()


def now_utc() -> datetime:
    return datetime.now(UTC)


class TokenIssuer:
    """
    Signs and verifies JWTs with a single process-wide secret.

    The secret is injected at construction. A missing secret fails construction
    with ConfigurationError unless `allow_unconfigured` is set, which is only meant
    for schema migration runs where no token is ever signed or verified.
    """

    def __init__(
        self,
        secret_key: str | None,
        issuer: str = DEFAULT_ISSUER,
        algorithm: str = "HS256",
        default_expires_in: timedelta = DEFAULT_EXPIRES_IN,
        allow_unconfigured: bool = False,
        clock: Callable[[], datetime] = now_utc,
    ):
        if not secret_key and not allow_unconfigured:
            raise ConfigurationError("Secret key is missing.")

        if not secret_key:
            logger.warning("Token issuer started without a secret key, signing is disabled")

        self.secret_key = secret_key
        self.issuer = issuer
        self.algorithm = algorithm
        self.default_expires_in = default_expires_in
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret_key=settings.secret_key,
            issuer=settings.token_issuer,
            algorithm=settings.jwt_algorithm,
            allow_unconfigured=settings.schema_migration,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def create_token(
        self,
        claims: Mapping[str, Any],
        *,
        expires_in: timedelta | int | None = USE_DEFAULT_EXPIRY,
        issuer: str | None = None,
        subject: str | None = None,
    ) -> str:
        """
        Create a signed JWT
        Args:
            claims: Payload supplied by the caller (user_id, token_id, ...)
            expires_in: Lifetime as timedelta or seconds. Defaults to the issuer
                default; None signs a token without an expiry
            issuer: Issuer claim, defaults to the configured issuer
            subject: Optional subject claim

        Returns:
            Encoded JWT token

        Raises:
            SigningError: If the secret is missing or signing fails
        """
        if not self.secret_key:
            raise SigningError("Secret key is missing.")

        if expires_in is USE_DEFAULT_EXPIRY:
            expires_in = self.default_expires_in
        elif isinstance(expires_in, int):
            expires_in = timedelta(seconds=expires_in)

        issued_at = self.clock()

        to_encode = dict(claims)
        to_encode["iat"] = int(issued_at.timestamp())
        to_encode["iss"] = issuer or self.issuer

        if subject is not None:
            to_encode["sub"] = subject

        if expires_in:
            to_encode["exp"] = int((issued_at + expires_in).timestamp())
        else:
            to_encode.pop("exp", None)

        try:
            return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
        except (JOSEError, TypeError, ValueError) as e:
            raise SigningError("Token signing failed", e)

    def decode_token(self, token: str, *, issuer: str | None = None) -> dict[str, Any]:
        """
        Verify a JWT and return its claims
        Args:
            token: Encoded JWT token
            issuer: Expected issuer, defaults to the configured issuer

        Returns:
            Decoded claims

        Raises:
            ConfigurationError: If the secret is missing
            VerificationError: If the token is malformed, expired, forged or
                carries another issuer
        """
        if not self.secret_key:
            raise ConfigurationError("Secret key is missing.")

        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=issuer or self.issuer,
            )
        except ExpiredSignatureError as e:
            raise VerificationError("Token has expired", e, expired=True)
        except JWTClaimsError as e:
            raise VerificationError("Token has invalid claims", e)
        except JWTError as e:
            raise VerificationError("Could not validate credentials", e)

    def decode_access_token(self, token: str) -> AccessTokenClaims:
        payload = self.decode_token(token)

        try:
            claims = AccessTokenClaims.model_validate(payload)
        except PydanticValidationError as e:
            raise VerificationError("Token has invalid claims", e)

        # Refresh claims are a superset of access claims, only the subject tells them apart
        if claims.subject != ACCESS_TOKEN_SUBJECT:
            raise VerificationError("Token is not an access token")

        return claims

    def decode_refresh_token(self, token: str) -> RefreshTokenClaims:
        payload = self.decode_token(token)

        try:
            claims = RefreshTokenClaims.model_validate(payload)
        except PydanticValidationError as e:
            raise VerificationError("Refresh token has invalid claims", e)

        if claims.subject != REFRESH_TOKEN_SUBJECT:
            raise VerificationError("Token is not a refresh token")

        return claims
