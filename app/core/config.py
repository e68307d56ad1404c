import logging
import os
import tomllib
from datetime import timedelta
from enum import StrEnum
from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL

PROJECT_DIR = Path(__file__).parent.parent.parent
PROJECT_TOML_PATH = PROJECT_DIR / "pyproject.toml"

with open(PROJECT_TOML_PATH, "rb") as f:
    PYPROJECT_CONTENT = tomllib.load(f)["project"]


class Environment(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    STG = "stg"
    PRD = "prd"


# Environments where auth cookies are left unscoped (host-only)
DEVELOPMENT_ENVIRONMENTS = {Environment.LOCAL, Environment.DEV}


def convert_app_name(s: str) -> str:
    return " ".join(word.capitalize() for word in s.split("-"))


class Settings(BaseSettings):
    """
    Application settings.

    These parameters can be configured
    with environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=False,
        extra="ignore",
    )

    # App variables
    app_name: str = PYPROJECT_CONTENT["name"]
    app_title: str = os.getenv("APP_TITLE", convert_app_name(app_name))
    app_version: str = PYPROJECT_CONTENT["version"]
    app_description: str = PYPROJECT_CONTENT["description"]

    backend_host: str = "0.0.0.0"
    backend_port: int = 8000

    # Number of workers for uvicorn
    workers_count: int = 1

    # Enable uvicorn reloading
    reload_uvicorn: bool = False

    # Current working environment
    current_environment: Environment = Environment.LOCAL
    log_level: int = logging.INFO
    log_dir: str = "logs"
    debug: bool = False

    # Variables for the database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "epic"
    postgres_db_schema: str = "public"

    # Token security settings
    secret_key: str | None = None
    # Schema migration / build runs are allowed to start without a secret
    schema_migration: bool = False
    jwt_algorithm: str = "HS256"
    token_issuer: str = ".epiclo.io"
    cookie_domain: str = ".epiclo.io"
    access_token_expire_seconds: int = int(timedelta(hours=1).total_seconds())
    refresh_token_expire_seconds: int = int(timedelta(days=30).total_seconds())
    refresh_token_renew_seconds: int = int(timedelta(days=15).total_seconds())
    access_token_refresh_threshold_seconds: int = int(timedelta(minutes=30).total_seconds())

    @computed_field
    @property
    def is_development(self) -> bool:
        """
        Whether the current environment is a development one.
        """
        return self.current_environment in DEVELOPMENT_ENVIRONMENTS

    @computed_field
    @property
    def db_url(self) -> URL:
        """
        Assemble database URL from settings.
        """
        return URL.build(
            scheme="postgresql+asyncpg",
            host=self.postgres_host,
            port=self.postgres_port,
            user=self.postgres_user,
            password=self.postgres_password,
            path=f"/{self.postgres_db}",
        )


settings = Settings()  # type: ignore
