"""Structured logging configuration for the FoamBoss estimator."""
import logging
import json
import sys
from datetime import datetime, timezone

# Estimate context passed through `extra=` by the engines and repositories
DEFAULT_CONTEXT_FIELDS = ("business_id", "estimate_id", "assembly_count", "duration_ms")


class JSONFormatter(logging.Formatter):
    """
    JSON structured log formatter for production.

    context_fields names the `extra=` attributes copied into each payload when
    present on the record (default: business_id, estimate_id, assembly_count,
    duration_ms).
    """
    def __init__(self, context_fields=DEFAULT_CONTEXT_FIELDS):
        super().__init__()
        self.context_fields = tuple(context_fields)

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        for field in self.context_fields:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", json_output: bool = True, context_fields=DEFAULT_CONTEXT_FIELDS):
    """Configure application logging."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter(context_fields))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
        ))

    root.handlers = [handler]

    # SQL echo is only useful when debugging queries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
