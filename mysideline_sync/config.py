"""
Configuration loader for the MySideline sync service.

Settings come from three layers, later layers winning:

1. an optional YAML file (``configs/mysideline.yaml``),
2. the ``.env`` file named by the YAML ``env_file`` key (or the project
   ``.env``), loaded with python-dotenv,
3. real environment variables (``MYSIDELINE_*``, ``DATABASE_URL``, ...).

All runner scripts accept ``--config <path>``; library code calls
``get_config()``.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_SEARCH_URL = (
    "https://profile.mysideline.com.au/register/clubsearch/"
    "?criteria=Masters&source=rugby-league"
)
DEFAULT_DATABASE_URL = "postgresql://localhost:5432/masters"
DEFAULT_REQUEST_TIMEOUT_MS = 60000
MIN_REQUEST_TIMEOUT_MS = 10000
DEFAULT_RETRY_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# env helpers
# ---------------------------------------------------------------------------

def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class MySidelineConfig:
    url: str = DEFAULT_SEARCH_URL
    sync_enabled: bool = False
    enable_scraping: bool = True
    use_mock: bool = False
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS

    def __post_init__(self) -> None:
        if self.request_timeout_ms < MIN_REQUEST_TIMEOUT_MS:
            logger.warning(
                "MYSIDELINE_REQUEST_TIMEOUT=%s is below %s ms, clamping",
                self.request_timeout_ms, MIN_REQUEST_TIMEOUT_MS,
            )
            self.request_timeout_ms = MIN_REQUEST_TIMEOUT_MS
        if self.retry_attempts < 1:
            self.retry_attempts = 1


@dataclass
class SyncConfig:
    """Complete configuration for one sync-service deployment."""

    mysideline: MySidelineConfig = field(default_factory=MySidelineConfig)
    database_url: str = DEFAULT_DATABASE_URL
    environment: str = "production"
    log_level: str = "INFO"
    temp_dir: Path = PROJECT_ROOT / "temp"
    schedule_hour: int = 3

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def headless(self) -> bool:
        """Development mode opens a visible browser window."""
        return not self.is_development


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _load_env_file(raw: Dict[str, Any], config_path: Optional[Path]) -> None:
    root = config_path.parent.parent if config_path else PROJECT_ROOT
    env_file = raw.get("env_file", "")
    env_path = root / env_file if env_file else root / ".env"

    if env_path.exists():
        # real environment variables keep priority over the file
        load_dotenv(dotenv_path=env_path, override=False)
        logger.info("Loaded env file: %s", env_path)
    else:
        load_dotenv()


def load_config(path: str | Path | None = None) -> SyncConfig:
    """Build a ``SyncConfig`` from an optional YAML file plus the environment."""
    raw: Dict[str, Any] = {}
    config_path: Optional[Path] = None
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}

    _load_env_file(raw, config_path)

    ms_raw = raw.get("mysideline", {}) or {}
    db_raw = raw.get("database", {}) or {}
    log_raw = raw.get("logging", {}) or {}

    mysideline = MySidelineConfig(
        url=os.getenv("MYSIDELINE_URL") or ms_raw.get("url", DEFAULT_SEARCH_URL),
        sync_enabled=_env_bool("MYSIDELINE_SYNC_ENABLED", ms_raw.get("sync_enabled", False)),
        enable_scraping=_env_bool("MYSIDELINE_ENABLE_SCRAPING", ms_raw.get("enable_scraping", True)),
        use_mock=_env_bool("MYSIDELINE_USE_MOCK", ms_raw.get("use_mock", False)),
        request_timeout_ms=_env_int(
            "MYSIDELINE_REQUEST_TIMEOUT",
            ms_raw.get("request_timeout_ms", DEFAULT_REQUEST_TIMEOUT_MS),
        ),
        retry_attempts=_env_int(
            "MYSIDELINE_RETRY_ATTEMPTS",
            ms_raw.get("retry_attempts", DEFAULT_RETRY_ATTEMPTS),
        ),
    )

    temp_dir = raw.get("temp_dir")
    return SyncConfig(
        mysideline=mysideline,
        database_url=os.getenv("DATABASE_URL") or db_raw.get("url", DEFAULT_DATABASE_URL),
        environment=(os.getenv("APP_ENV") or raw.get("environment", "production")).lower(),
        log_level=os.getenv("LOG_LEVEL") or log_raw.get("level", "INFO"),
        temp_dir=PROJECT_ROOT / temp_dir if temp_dir else PROJECT_ROOT / "temp",
        schedule_hour=int(raw.get("schedule_hour", 3)),
    )


# ---------------------------------------------------------------------------
# Global singleton – set once at startup via ``init_config()``
# ---------------------------------------------------------------------------

_active_config: Optional[SyncConfig] = None


def init_config(path: str | Path | None = None) -> SyncConfig:
    """Load the config from *path* and store it as the global active config."""
    global _active_config
    _active_config = load_config(path)
    return _active_config


def get_config() -> SyncConfig:
    """Return the active config, loading from the environment on first use."""
    global _active_config
    if _active_config is None:
        _active_config = load_config()
    return _active_config


def reset_config() -> None:
    """Forget the active config (tests swap environments between cases)."""
    global _active_config
    _active_config = None
