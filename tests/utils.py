from dataclasses import dataclass, field
from datetime import timedelta

from app.core.exceptions.auth import RotationError
from app.core.tokens import ACCESS_TOKEN_SUBJECT, REFRESH_TOKEN_SUBJECT, TokenIssuer
from app.core.types import TokenPairDict

TEST_SECRET_KEY = "test-secret-key-for-session-tokens"


@dataclass
class FakeUser:
    id: int


@dataclass
class FakeGrant:
    user_id: int
    disabled: bool = False


@dataclass
class FakeUserStore:
    """In-memory user-record store with the same contract as DatabaseUserStore"""

    token_issuer: TokenIssuer
    users: dict[int, FakeUser] = field(default_factory=dict)
    grants: dict[int, FakeGrant] = field(default_factory=dict)
    rotations: list[int] = field(default_factory=list)

    def add_user(self, user_id: int) -> FakeUser:
        user = FakeUser(id=user_id)
        self.users[user_id] = user
        return user

    def access_token_for(self, user_id: int, expires_in: timedelta = timedelta(hours=1)) -> str:
        return self.token_issuer.create_token(
            {"user_id": user_id},
            subject=ACCESS_TOKEN_SUBJECT,
            expires_in=expires_in,
        )

    def refresh_token_for(
        self, user_id: int, expires_in: timedelta = timedelta(days=30)
    ) -> tuple[int, str]:
        """Create a live grant for the user and sign a refresh token for it."""
        token_id = len(self.grants) + 1
        self.grants[token_id] = FakeGrant(user_id=user_id)
        token = self.token_issuer.create_token(
            {"user_id": user_id, "token_id": token_id},
            subject=REFRESH_TOKEN_SUBJECT,
            expires_in=expires_in,
        )
        return token_id, token

    async def find_user_by_id(self, user_id: int | str) -> FakeUser | None:
        return self.users.get(int(user_id))

    async def rotate_refresh_token(
        self,
        user: FakeUser,
        token_id: int | str,
        claimed_expiry: int | None,
        raw_refresh_token: str,
    ) -> TokenPairDict:
        grant = self.grants.get(int(token_id))
        if grant is None or grant.disabled or grant.user_id != user.id:
            raise RotationError("Refresh token grant is revoked or unknown")

        self.rotations.append(int(token_id))

        return TokenPairDict(
            access_token=self.access_token_for(user.id),
            refresh_token=raw_refresh_token,
        )

    async def revoke_refresh_token(self, token_id: int | str) -> bool:
        grant = self.grants.get(int(token_id))
        if grant is None:
            return False

        grant.disabled = True
        return True


def cookie_header(**cookies: str) -> dict[str, str]:
    """Build a Cookie request header from keyword arguments."""
    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}
