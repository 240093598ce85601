"""
Logging setup.

Records carry the request id and, while a turn streams, the stream id.
Structured fields are passed as ``logger.info("...", data={...})``.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
stream_id_ctx: ContextVar[str | None] = ContextVar("stream_id", default=None)

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def _context_fields() -> dict[str, str]:
    fields = {}
    request_id = request_id_ctx.get()
    if request_id:
        fields["request_id"] = request_id
    stream_id = stream_id_ctx.get()
    if stream_id:
        fields["stream_id"] = stream_id
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context_fields(),
        }
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Compact, colored lines for local development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.fromtimestamp(record.created, UTC).strftime("%H:%M:%S.%f")[:-3]
        context = _context_fields()
        tag = context.get("request_id", "-")[:8]
        if "stream_id" in context:
            tag += f"/{context['stream_id'][:8]}"

        line = f"{timestamp} {color}{record.levelname:<8}{self.RESET} [{tag}] {record.name}: {record.getMessage()}"
        data = getattr(record, "data", None)
        if data:
            line += " " + " ".join(f"{key}={value}" for key, value in data.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """Adapter moving the ``data`` keyword into the record's extras."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        data = kwargs.pop("data", None)
        if data is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "data": data}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), {})


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: str | None = None,
) -> None:
    """
    Install handlers on the root logger, replacing any previous ones.

    Console output is JSON when ``json_output`` is set; the optional log
    file is always JSON.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter() if json_output else ConsoleFormatter())
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
