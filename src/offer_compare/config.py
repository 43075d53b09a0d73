from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .schemas import to_number

DEFAULT_API_URL = "http://localhost:8000/api"
DEFAULT_SETTINGS_PATH = Path("~/.offer_compare/settings.json")
DEFAULT_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Config:
    """Runtime settings, read from ``OFFER_COMPARE_*`` environment variables."""

    api_url: str = DEFAULT_API_URL
    settings_path: Path = DEFAULT_SETTINGS_PATH
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if environ is None else environ
        timeout = to_number(env.get("OFFER_COMPARE_TIMEOUT"), DEFAULT_TIMEOUT)
        return cls(
            api_url=env.get("OFFER_COMPARE_API_URL") or DEFAULT_API_URL,
            settings_path=Path(env.get("OFFER_COMPARE_SETTINGS") or DEFAULT_SETTINGS_PATH).expanduser(),
            timeout=timeout if timeout > 0 else DEFAULT_TIMEOUT,
            log_level=(env.get("OFFER_COMPARE_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
