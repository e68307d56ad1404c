from fastapi import Request, Response

from app.core.config import Settings
from app.core.types import TokenPairDict

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
AUTH_HEADER_NAME = "epicAuth"

ACCESS_TOKEN_COOKIE_MAX_AGE = 60 * 60  # 1 hour
REFRESH_TOKEN_COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days


def parse_auth_header(value: str | None) -> str | None:
    """
    Extract the credential from a `<scheme> <token>` header value

    Args:
        value: Raw header value

    Returns:
        The second whitespace separated part, or None when there is none
    """
    if not value:
        return None

    parts = value.split()
    if len(parts) < 2:
        return None

    return parts[1]


def extract_access_token(request: Request) -> str | None:
    """
    Get the access token for a request.

    The access token cookie wins; the epicAuth header is only consulted
    when the cookie is absent.
    """
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token

    return parse_auth_header(request.headers.get(AUTH_HEADER_NAME))


def extract_refresh_token(request: Request) -> str | None:
    return request.cookies.get(REFRESH_TOKEN_COOKIE) or None


def cookie_domain(settings: Settings) -> str | None:
    """Parent domain for auth cookies, host-only in development"""
    if settings.is_development:
        return None

    return settings.cookie_domain


def set_token_cookies(response: Response, tokens: TokenPairDict, settings: Settings) -> None:
    """
    Attach a token pair to the response as http-only cookies

    Args:
        response: Outgoing response
        tokens: Access and refresh token pair
        settings: Application settings, used for the cookie domain
    """
    domain = cookie_domain(settings)

    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=tokens["access_token"],
        max_age=ACCESS_TOKEN_COOKIE_MAX_AGE,
        domain=domain,
        httponly=True,
    )
    response.set_cookie(
        key=REFRESH_TOKEN_COOKIE,
        value=tokens["refresh_token"],
        max_age=REFRESH_TOKEN_COOKIE_MAX_AGE,
        domain=domain,
        httponly=True,
    )


def clear_token_cookies(response: Response, settings: Settings) -> None:
    domain = cookie_domain(settings)

    response.delete_cookie(key=ACCESS_TOKEN_COOKIE, domain=domain, httponly=True)
    response.delete_cookie(key=REFRESH_TOKEN_COOKIE, domain=domain, httponly=True)
