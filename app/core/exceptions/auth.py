from app.core.exceptions.base import AppException

# =============================================================================
# Token and session exceptions (raised by core/services, resolved by middleware)
# =============================================================================


class ConfigurationError(AppException):
    """Signing secret is missing outside of schema migration mode."""

    def __init__(
        self, message: str = "Secret key is missing", exception: Exception | None = None
    ):
        super().__init__(message, exception)


class SigningError(AppException):
    """Token could not be signed."""

    def __init__(self, message: str = "Token signing failed", exception: Exception | None = None):
        super().__init__(message, exception)


class VerificationError(AppException):
    """Token signature, structure, issuer or expiry is invalid."""

    def __init__(
        self,
        message: str = "Could not validate credentials",
        exception: Exception | None = None,
        expired: bool = False,
    ):
        super().__init__(message, exception)
        self.expired = expired


class UnknownUserError(AppException):
    """The user a refresh token refers to no longer exists."""

    def __init__(self, message: str = "Invalid user", exception: Exception | None = None):
        super().__init__(message, exception)


class RotationError(AppException):
    """The user-record store rejected a refresh token rotation."""

    def __init__(
        self, message: str = "Refresh token rotation rejected", exception: Exception | None = None
    ):
        super().__init__(message, exception)
