"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from sqlalchemy.pool import StaticPool

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "BudgetCycle"
    DB_FILENAME = "budgetcycle.db"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("BUDGETCYCLE_DEV_MODE", default=False)
        self.DATABASE_URL = os.getenv("BUDGETCYCLE_DATABASE_URL", self._build_sqlite_url())
        # Typed fields are always written; the legacy note markers are kept for old readers.
        self.WRITE_NOTE_MARKERS = _env_bool("BUDGETCYCLE_WRITE_NOTE_MARKERS", default=True)
        self.SHARE_TOLERANCE = _env_float("BUDGETCYCLE_SHARE_TOLERANCE", 0.01)
        self.CATCH_UP_MINUTES = int(_env_float("BUDGETCYCLE_CATCH_UP_MINUTES", 60))
        if self.CATCH_UP_MINUTES <= 0:
            raise ValueError("BUDGETCYCLE_CATCH_UP_MINUTES must be positive.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("BUDGETCYCLE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {}


class DevConfig(BaseConfig):
    """Development configuration: verbose console logging on local SQLite."""

    DEBUG = True
    TESTING = False

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = True


class TestConfig(BaseConfig):
    """In-memory database for tests and dry runs."""

    __test__ = False  # keep pytest from collecting this class

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"
        self.DEV_MODE = True

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        # A single shared connection keeps the in-memory database alive across sessions.
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}


_CONFIG_MAP: dict[str, type[BaseConfig]] = {
    "development": DevConfig,
    "dev": DevConfig,
    "test": TestConfig,
    "default": BaseConfig,
}


def resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.strip().lower(), BaseConfig)
