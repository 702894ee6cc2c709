"""
Runtime settings for the name-resolution cache.

Values come from the environment (optionally seeded from a .env file in
the working directory) and fall back to the defaults below.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PUBCHEM_SMILES_BASE_URL = "https://pubchem.ncbi.nlm.nih.gov/rest/pug/compound/smiles"

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 0.4
DEFAULT_MAX_WORKERS = 4

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_env() -> None:
    """Load .env from the working directory if present.

    Variables already set in the process environment win.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


@dataclass
class Settings:
    """Configuration for lookups, retries and logging."""

    base_url: str = PUBCHEM_SMILES_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    max_workers: int = DEFAULT_MAX_WORKERS
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")


def _env_number(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None


def load_settings() -> Settings:
    """Build Settings from CHEMNAMES_* environment variables."""
    load_env()
    log_dir = os.getenv("CHEMNAMES_LOG_DIR")
    raw_level = os.getenv("CHEMNAMES_LOG_LEVEL") or "INFO"
    log_level = raw_level.strip().upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"Invalid value for CHEMNAMES_LOG_LEVEL: {raw_level!r}")
    return Settings(
        base_url=os.getenv("CHEMNAMES_BASE_URL") or PUBCHEM_SMILES_BASE_URL,
        timeout=_env_number("CHEMNAMES_TIMEOUT", float, DEFAULT_TIMEOUT),
        max_attempts=_env_number("CHEMNAMES_MAX_ATTEMPTS", int, DEFAULT_MAX_ATTEMPTS),
        base_delay=_env_number("CHEMNAMES_BASE_DELAY", float, DEFAULT_BASE_DELAY),
        max_workers=_env_number("CHEMNAMES_MAX_WORKERS", int, DEFAULT_MAX_WORKERS),
        log_level=log_level,
        log_dir=Path(log_dir) if log_dir else None,
    )
