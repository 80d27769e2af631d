"""Logging setup and structured-log helpers for the webhook service.

Two output modes:
- JSON lines (LOG_JSON=true) for log aggregation
- coloured single lines for local runs

Workflow code logs through plain ``logging`` loggers with bracketed tags
([WEBHOOK], [OWNER_ROLE], [TASK_MIRROR], [HUBSPOT]); ``log_event`` and
``log_with_root_cause`` add machine-readable fields on top.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any


# Attributes every LogRecord has; anything else on a record came from ``extra=``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, carrying every ``extra`` field."""

    def __init__(self, *, include_path: bool = False, extra_fields: dict[str, Any] | None = None):
        super().__init__()
        self.include_path = include_path
        self.extra_fields = dict(extra_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_path:
            entry["path"] = f"{record.pathname}:{record.lineno}"
            entry["function"] = record.funcName
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(_record_extras(record))
        entry.update(self.extra_fields)
        return json.dumps(entry, ensure_ascii=False, default=str)


class PrettyFormatter(logging.Formatter):
    """Coloured ``time | level | logger | message`` lines for development."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        when = datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%d %H:%M:%S")
        line = (
            f"{when} | {color}{record.levelname:<8}{self.RESET} | "
            f"{record.name[-28:]:<28} | {record.getMessage()}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    include_path: bool = False,
    service_name: str = "hubspot-workflows",
) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Root level name; unknown names fall back to INFO
        json_format: JSON lines instead of coloured text
        include_path: Add source location to JSON entries
        service_name: Value of the ``service`` field in JSON entries
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    if json_format:
        formatter: logging.Formatter = JSONFormatter(
            include_path=include_path, extra_fields={"service": service_name}
        )
    else:
        formatter = PrettyFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


LOG_EVENT_TITLES: dict[str, str] = {
    "webhook_received": "📩 Webhook: batch received",
    "webhook_scheduled": "🛰️ Webhook: workflows scheduled",
    "webhook_signature_rejected": "⛔ Webhook: signature rejected",
    "workflows_started": "🔥 Workflows: dispatch started",
    "workflows_done": "🏁 Workflows: dispatch finished",
    "workflow_failed": "💥 Workflow: failed",
}


def log_event(
    logger: logging.Logger,
    *,
    event: str,
    level: str | None = None,
    **fields: Any,
) -> None:
    """Log a named lifecycle event as ``<title> | key=value ...``.

    ``fields`` also travel as record attributes so the JSON formatter emits
    them as separate keys. None values are left out of the text.
    """
    emit = getattr(logger, (level or "info").lower(), logger.info)
    pairs = " ".join(f"{key}={value}" for key, value in fields.items() if value is not None)
    title = LOG_EVENT_TITLES.get(event, event)
    emit(f"{title} | {pairs}" if pairs else title, extra={"event": event, **fields})


def safe_preview(value: Any, max_len: int = 120) -> str:
    """Short single-line rendering of ``value`` for log messages."""
    if value is None:
        return ""
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
    return text if len(text) <= max_len else f"{text[: max_len - 3]}..."


def classify_root_cause(error: Any, *, status_code: int | None = None) -> str:
    """Bucket a failure into a short root-cause tag.

    HTTP status wins (taken from ``error.status_code`` when not given);
    otherwise the message is inspected.
    """
    if status_code is None:
        status_code = getattr(error, "status_code", None)

    if status_code == 429:
        return "HUBSPOT_RATE_LIMIT"
    if status_code in (401, 403):
        return "HUBSPOT_AUTH"
    if status_code is not None and 400 <= status_code < 500:
        return f"HUBSPOT_REJECTED_{status_code}"
    if status_code is not None and status_code >= 500:
        return f"HUBSPOT_UPSTREAM_{status_code}"

    text = str(error or "").lower()
    if "timeout" in text or "timed out" in text:
        return "HUBSPOT_TIMEOUT"
    if "association" in text:
        return "ASSOCIATION_ERROR"
    return "UNKNOWN"


def log_with_root_cause(
    logger: logging.Logger,
    level: str,
    message: str,
    *,
    root_cause: str | None = None,
    error: Exception | None = None,
    auto_classify: bool = True,
    **context: Any,
) -> None:
    """Log ``message`` suffixed with ``[ROOT_CAUSE: ...]``.

    The cause is classified from ``error`` unless given. The error's type and
    text plus ``context`` (workflow, object_id, ...) become record fields, and
    the traceback is attached when an error is passed.
    """
    if root_cause is None and auto_classify and error is not None:
        root_cause = classify_root_cause(error, status_code=context.get("status_code"))

    fields = dict(context)
    if root_cause:
        message = f"{message} [ROOT_CAUSE: {root_cause}]"
        fields["root_cause"] = root_cause
    if error is not None:
        fields["error_type"] = type(error).__name__
        fields["error_message"] = str(error)

    name = level.lower()
    emit = getattr(logger, name) if name in ("debug", "info", "warning", "error", "critical") else logger.info
    emit(message, extra=fields, exc_info=error)
