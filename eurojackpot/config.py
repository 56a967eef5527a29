"""Environment-based configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL


def resolve_database_url() -> str:
    """Resolve DB connection string.

    Priority:
      1) DATABASE_URL (explicit)
      2) Build from PG* env vars (common Postgres convention)
      3) Fallback to local sqlite
    """

    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    host = os.getenv("PGHOST")
    user = os.getenv("PGUSER")
    database = os.getenv("PGDATABASE")
    port_raw = os.getenv("PGPORT")

    if host and user and database:
        sslmode = os.getenv("PGSSLMODE", "require")

        try:
            port = int(port_raw) if port_raw else 5432
        except ValueError:
            port = 5432

        url = URL.create(
            drivername="postgresql+psycopg2",
            username=user,
            password=os.getenv("PGPASSWORD"),
            host=host,
            port=port,
            database=database,
            query={"sslmode": sslmode} if sslmode else {},
        )
        return url.render_as_string(hide_password=False)

    return "sqlite:///./eurojackpot.db"


def _optional_int(name: str) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _int(name: str, default: int) -> int:
    value = _optional_int(name)
    return default if value is None else value


def _float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True)
class BaseConfig:
    """Base configuration shared by all environments."""

    APP_ENV: str = os.getenv("APP_ENV", "development")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL: str = resolve_database_url()

    # "db" reads draws from DATABASE_URL, "json" from DRAWS_JSON_PATH
    DRAW_SOURCE: str = os.getenv("DRAW_SOURCE", "db").lower().strip()
    DRAWS_JSON_PATH: str = os.getenv("DRAWS_JSON_PATH", "eurojackpot_draws.json")

    # Lotto.pl open API
    LOTTO_API_BASE_URL: str = os.getenv("LOTTO_API_BASE_URL", "https://developers.lotto.pl/api/open/v1")
    LOTTO_API_KEY: str = os.getenv("LOTTO_API_KEY", "")
    LOTTO_GAME_TYPE: str = os.getenv("LOTTO_GAME_TYPE", "EuroJackpot")
    HTTP_TIMEOUT_SECONDS: float = _float("HTTP_TIMEOUT_SECONDS", 10.0)
    HTTP_RETRIES: int = _int("HTTP_RETRIES", 3)
    HTTP_BACKOFF: float = _float("HTTP_BACKOFF", 0.5)
    REQUEST_DELAY_MS: int = _int("REQUEST_DELAY_MS", 500)
    DRAW_HISTORY_START: str = os.getenv("DRAW_HISTORY_START", "2017-01-03")
    RESULTS_AVAILABLE_HOUR: int = _int("RESULTS_AVAILABLE_HOUR", 23)

    RANDOM_SEED: int | None = _optional_int("RANDOM_SEED")
    BACKTEST_MAX_TEST_SIZE: int = _int("BACKTEST_MAX_TEST_SIZE", 200)


@dataclass(frozen=True)
class DevelopmentConfig(BaseConfig):
    """Development configuration."""

    DEBUG: bool = True


@dataclass(frozen=True)
class ProductionConfig(BaseConfig):
    """Production configuration."""

    DEBUG: bool = False


@dataclass(frozen=True)
class TestingConfig(BaseConfig):
    """Configuration used by the test-suite (in-memory database)."""

    TESTING: bool = True
    DEBUG: bool = False
    DATABASE_URL: str = "sqlite:///:memory:"
    DRAW_SOURCE: str = "db"
    RANDOM_SEED: int | None = 7


def get_config() -> type[BaseConfig]:
    """Resolve configuration class based on APP_ENV."""

    env = os.getenv("APP_ENV", "development").lower().strip()
    if env == "production":
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
