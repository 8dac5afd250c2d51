from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_ENV_LOADED = False


def ensure_env_loaded() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    load_dotenv()
    _ENV_LOADED = True


def _get_text(name: str, *, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip()
    return normalized or default


def _get_int(name: str, *, default: int, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _get_log_level(name: str, *, default: str) -> str:
    value = _get_text(name, default=default).upper()
    allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
    return value if value in allowed else default


@dataclass(frozen=True)
class Settings:
    db_path: Path
    import_buffer_size: int
    import_read_chunk_size: int
    import_progress_interval: int
    import_file_encoding: str
    import_log_level: str

    @classmethod
    def from_env(cls) -> Settings:
        ensure_env_loaded()
        return cls(
            db_path=Path(_get_text("VOTER_DB_PATH", default="db/voters.db")),
            import_buffer_size=_get_int("IMPORT_BUFFER_SIZE", default=5000, minimum=1),
            import_read_chunk_size=_get_int("IMPORT_READ_CHUNK_SIZE", default=10000, minimum=1),
            import_progress_interval=_get_int("IMPORT_PROGRESS_INTERVAL", default=100000, minimum=1),
            import_file_encoding=_get_text("IMPORT_FILE_ENCODING", default="utf-8"),
            import_log_level=_get_log_level("IMPORT_LOG_LEVEL", default="INFO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
