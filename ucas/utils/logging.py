"""
Logging setup and simulation context for UCAS.

``configure_logging(config)`` is called once by each CLI command, after the
config is loaded and before the rule catalog or any collaborator is built.
Library modules only ever do ``logging.getLogger(__name__)``.

Console records go to stderr; stdout is reserved for the JSON documents the
CLI prints.

Simulation context
------------------
Per-account and per-resource failures are logged and skipped, so the log is
the only place they surface.  ``context_logger`` wraps a module logger and
attaches ``account_id`` / ``action`` / ``resource_id`` to every record:

    log = context_logger(logger, action=ActionType.OFFHOURS, resource_id="i-1")
    log.warning("Skipping resource: %s", exc)
    # text: ... [action=offhours resource_id=i-1] Skipping resource: ...
    # json: {..., "action": "offhours", "resource_id": "i-1"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, MutableMapping, Optional

if TYPE_CHECKING:
    from ucas.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Rendered in this order in the text prefix.
CONTEXT_FIELDS: tuple[str, ...] = ("account_id", "action", "resource_id")

# Attributes every LogRecord carries; anything else came from ``extra=``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class SimulationContextAdapter(logging.LoggerAdapter):
    """Prefix messages with the simulation context and pass it on as ``extra``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        context = {k: v for k, v in {**self.extra, **(kwargs.get("extra") or {})}.items() if v is not None}
        kwargs["extra"] = {k: str(v) for k, v in context.items()}
        prefix = " ".join(f"{k}={context[k]}" for k in CONTEXT_FIELDS if k in context)
        return (f"[{prefix}] {msg}" if prefix else msg), kwargs


def context_logger(logger: logging.Logger, **context: Any) -> SimulationContextAdapter:
    """Bind simulation context (``account_id``, ``action``, ``resource_id``) to ``logger``."""
    unknown = set(context) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
    return SimulationContextAdapter(logger, context)


class _JsonFormatter(logging.Formatter):
    """One JSON object per record; context and other ``extra=`` fields at top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )
        return json.dumps(payload, default=str)


def configure_logging(config: "LoggingConfig", stream: Optional[IO[str]] = None) -> None:
    """Install console (and optional file) handlers on the root logger.

    Args:
        config: ``[logging]`` section: level, ``log_file``, ``json_format``.
        stream: Console stream; stderr when omitted.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = (
        _JsonFormatter() if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
