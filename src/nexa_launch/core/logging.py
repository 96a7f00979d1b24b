"""Launch logging: plain or JSON records tagged with the run id.

Pipeline steps attach ``step`` and ``host`` fields through :func:`step_context`
so JSON logs of a run can be filtered per staging step and per node.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FILENAME = "nexa-launch.log"

# Run id of the launch currently in progress
_CORRELATION_ID: ContextVar[str] = ContextVar("correlation_id", default="")


def set_correlation_id(cid: str) -> None:
    _CORRELATION_ID.set(cid)


def step_context(step: str, host: Optional[str] = None, **fields: Any) -> Dict[str, Any]:
    """``extra=`` payload naming the pipeline step (and node) a record belongs to."""
    context: Dict[str, Any] = {"step": step}
    if host is not None:
        context["host"] = host
    context.update(fields)
    return {"launch_context": context}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the run id and any step context."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": _CORRELATION_ID.get(),
        }
        launch_context = getattr(record, "launch_context", None)
        if launch_context:
            payload.update(launch_context)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    json_logs: bool = False,
) -> None:
    """Install stdout (and optionally file) handlers on the root logger."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / LOG_FILENAME))

    formatter: logging.Formatter
    if json_logs:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level.upper(), handlers=handlers, force=True)
