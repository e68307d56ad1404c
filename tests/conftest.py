from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from faker import Faker
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.core.config import Environment, Settings
from app.core.tokens import TokenIssuer
from app.main import create_app
from tests.utils import TEST_SECRET_KEY, FakeUser, FakeUserStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def faker() -> Faker:
    """Create a Faker instance for generating test data."""
    return Faker()


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(TEST_SECRET_KEY, default_expires_in=timedelta(days=7))


@pytest.fixture
def user_store(token_issuer: TokenIssuer) -> FakeUserStore:
    return FakeUserStore(token_issuer)


@pytest.fixture
def user(user_store: FakeUserStore, faker: Faker) -> FakeUser:
    """Create a test user in the fake store."""
    return user_store.add_user(faker.random_int(min=1, max=10_000))


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        current_environment=Environment.LOCAL,
        secret_key=TEST_SECRET_KEY,
    )


@pytest_asyncio.fixture
async def test_app(
    test_settings: Settings,
    token_issuer: TokenIssuer,
    user_store: FakeUserStore,
) -> AsyncGenerator[FastAPI, None]:
    """Create the application wired to the in-memory user store."""
    yield create_app(
        app_settings=test_settings,
        token_issuer=token_issuer,
        user_store=user_store,
    )


@pytest_asyncio.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac
