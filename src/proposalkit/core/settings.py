"""Centralized configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the repository root: .env, .env.local, .env.dev/.env.test/.env.prod

Editor tuning knobs (history depth, autosave debounce/timeout/retry) live here
so the API, the CLI and tests all agree on the same defaults.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `PROPOSALKIT_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    history_depth : int
        Maximum number of snapshots kept on each of the undo/redo stacks.
    autosave_enabled : bool
        Whether sessions schedule saves on their own after edits.
    autosave_debounce : float
        Quiet period (seconds) after the last edit before a save starts.
    autosave_timeout : float
        Upper bound (seconds) for a single save request.
    autosave_retry_delay : float
        Delay (seconds) before retrying a failed save.
    autosave_max_retries : int
        Automatic retries after a failure; further attempts wait for the next
        edit or an explicit save.
    store_dir : Path
        Directory used by the JSON document store.
    """

    environment: EnvName = Field(default="dev", alias="PROPOSALKIT_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    history_depth: int = Field(default=50, ge=1, alias="PROPOSALKIT_HISTORY_DEPTH")

    autosave_enabled: bool = Field(default=True, alias="PROPOSALKIT_AUTOSAVE_ENABLED")
    autosave_debounce: float = Field(default=1.0, ge=0.0, alias="PROPOSALKIT_AUTOSAVE_DEBOUNCE")
    autosave_timeout: float = Field(default=10.0, gt=0.0, alias="PROPOSALKIT_AUTOSAVE_TIMEOUT")
    autosave_retry_delay: float = Field(
        default=2.0, ge=0.0, alias="PROPOSALKIT_AUTOSAVE_RETRY_DELAY"
    )
    autosave_max_retries: int = Field(default=3, ge=0, alias="PROPOSALKIT_AUTOSAVE_MAX_RETRIES")

    store_dir: Path = Field(
        default=Path("artifacts") / "documents", alias="PROPOSALKIT_STORE_DIR"
    )

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_dev(self) -> bool:
        """Return True if running in the development environment."""
        return self.environment == "dev"

    @property
    def is_test(self) -> bool:
        """Return True if running in the test environment."""
        return self.environment == "test"

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests can force a rebuild via `load_settings.cache_clear()` after
    mutating `os.environ`.
    """
    os.environ.setdefault("PROPOSALKIT_ENV", "dev")
    return Settings()


settings: Settings = load_settings()


def get_logger(name: str = "proposalkit") -> logging.Logger:
    """Return a process-global logger configured to the current `LOG_LEVEL`."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
