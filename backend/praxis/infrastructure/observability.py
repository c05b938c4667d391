"""Structured Logging: order/ticket-aware formatters and one-time setup.

Invariants:
    - Every line carries timestamp, level, logger name and message
    - Domain fields (order_id, ticket_id, protocol, from_state -> to_state, ...)
      travel as logging extras and are rendered in a fixed order when present
    - Record time is the moment the event was logged (record.created), not the
      moment it was formatted
    - setup_logging is idempotent: calling it again replaces its own handler

Design Decisions:
    - Formatters on stdlib logging, no third-party logging package
    - JSON for production; the text format keeps the same fields as a
      bracketed suffix so a dev console still shows which order a line is about
    - SQLAlchemy engine and aiosqlite chatter capped at WARNING
"""

import logging
import json
from datetime import datetime, timezone

DOMAIN_FIELDS = (
    "order_id", "ticket_id", "protocol", "event", "from_state", "to_state",
    "component_id", "product_id",
)
DIAGNOSTIC_FIELDS = ("error_code", "attempt", "path")
EXTRA_FIELDS = DOMAIN_FIELDS + DIAGNOSTIC_FIELDS

NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite")

_HANDLER_NAME = "praxis"


def record_fields(record: logging.LogRecord) -> dict[str, str]:
    """Extras present on the record, in EXTRA_FIELDS order."""
    fields = {}
    for key in EXTRA_FIELDS:
        val = record.__dict__.get(key)
        if val is not None:
            fields[key] = str(val)
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log.update(record_fields(record))
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable line with the domain fields appended, e.g.
    ``... Order ORD-20261018-7QK2MX: PAID -> IN_PREPARATION [protocol=... event=...]``.
    """

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record_fields(record)
        if not fields:
            return line
        suffix = " ".join(f"{key}={val}" for key, val in fields.items())
        head, sep, trace = line.partition("\n")
        return f"{head} [{suffix}]{sep}{trace}"


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Configure root logging for the application; returns the installed handler."""
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ConsoleFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
