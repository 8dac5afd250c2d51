from __future__ import annotations

import json
import logging
from typing import Any

INGEST_LOGGER_NAME = "ingest_voters"


def configure_logging(level: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger = logging.getLogger(INGEST_LOGGER_NAME)
    logger.setLevel(level)
    return logger


def _format_value(value: Any) -> str:
    text = str(value)
    # Quote anything that would split the key=value line.
    if not text or any(character.isspace() or character in '="' for character in text):
        return json.dumps(text)
    return text


def log_event(
    logger: logging.Logger,
    *,
    run_id: str | None,
    component: str,
    operation: str,
    status: str,
    duration_ms: int | None = None,
    error_code: str | None = None,
    **fields: Any,
) -> None:
    """Emit one ``key=value`` line for an ingest step.

    ``None`` fields are dropped. The level follows ``status``: ``error`` and
    ``warning`` map to their levels, anything else logs at info.
    """
    payload: dict[str, Any] = {
        "run_id": run_id or "-",
        "component": component,
        "operation": operation,
        "status": status,
        "duration_ms": duration_ms or 0,
    }
    if error_code:
        payload["error_code"] = error_code
    payload.update((key, value) for key, value in fields.items() if value is not None)

    log_line = " ".join(f"{key}={_format_value(value)}" for key, value in payload.items())
    if status == "error":
        logger.error(log_line)
    elif status == "warning":
        logger.warning(log_line)
    else:
        logger.info(log_line)
