"""Runtime configuration collected from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .coerce import to_bool, to_float, to_int

ROOT_DIR = Path(__file__).resolve().parents[2]

MODE_API = "api"
MODE_STATIC = "static"
MODES = (MODE_API, MODE_STATIC)


@dataclass(frozen=True)
class Settings:
    data_dir: Path = field(default_factory=lambda: ROOT_DIR / "data")
    read_only: bool = False
    log_level: str = "INFO"
    mode: str = MODE_API
    api_base_url: str = "http://localhost:8000/api"
    static_source: Optional[str] = None
    api_retries: int = 3
    api_backoff: float = 0.5

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ValueError(f"Unknown deployment mode: {self.mode!r} (expected one of {MODES})")

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        load_dotenv(dotenv_path=env_file or ROOT_DIR / ".env", override=False)
        data_dir = os.getenv("DATA_DIR")
        retries = to_int(os.getenv("API_RETRIES"))
        backoff = to_float(os.getenv("API_BACKOFF"))
        return cls(
            data_dir=Path(data_dir) if data_dir else ROOT_DIR / "data",
            read_only=to_bool(os.getenv("PROPSCAN_READ_ONLY")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            mode=os.getenv("PROPSCAN_MODE", MODE_API).lower(),
            api_base_url=os.getenv("API_BASE_URL", "http://localhost:8000/api"),
            static_source=os.getenv("STATIC_DATA_URL") or None,
            api_retries=3 if retries is None else retries,
            api_backoff=0.5 if backoff is None else backoff,
        )


__all__ = ["Settings", "MODE_API", "MODE_STATIC", "MODES", "ROOT_DIR"]
