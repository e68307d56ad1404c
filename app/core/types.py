from typing_extensions import TypedDict


class TokenPairDict(TypedDict):
    """Internal token pair data passed between auth functions."""

    access_token: str
    refresh_token: str
