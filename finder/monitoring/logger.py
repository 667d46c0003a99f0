"""
Structured JSON logger for the Finder API.

Every line carries the component that logged it plus the request id and
storage adapter of the request being served, taken from the request
context unless passed explicitly. File operations add the virtual `path`
they touched; failures add their `error_kind`.
"""
import json
import logging
from datetime import datetime, timezone

from finder.monitoring.context import CONTEXT_VARS

# Keys set by logging itself; anything else in record.__dict__ came in via `extra`
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}
_HEADER = ("timestamp", "level", "component", "message")


class RequestContextFilter(logging.Filter):
    """Copy the request context onto records that don't carry it already."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name, var in CONTEXT_VARS.items():
            if getattr(record, name, None) is None:
                setattr(record, name, var.get())
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": getattr(record, "component", None) or record.module,
            "message": record.getMessage(),
        }
        # Context and extra fields only appear when set
        for key, value in record.__dict__.items():
            if key in _RESERVED or key in _HEADER or value is None:
                continue
            log_record[key] = value
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


logger = logging.getLogger("finder")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(JsonFormatter())
handler.addFilter(RequestContextFilter())
logger.handlers = [handler]
logger.propagate = False


def set_level(level: str) -> None:
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def log(level: str, message: str, component: str = None, **fields):
    """
    Log `message` as one JSON line.

    `module=` is accepted as an alias of `component`; `request_id` and
    `adapter` override the request context; any other keyword becomes a
    field of the line.
    """
    module = fields.pop("module", None)
    component = component or module
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        extra={"component": component, **fields},
    )
