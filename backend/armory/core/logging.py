import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

# Third-party loggers that are noisy at the application level
_LIBRARY_LEVELS = {
    "sqlalchemy.engine": logging.WARNING,
    "uvicorn.access": logging.INFO,
    "stripe": logging.WARNING,
    "multipart": logging.WARNING,
}


class JSONFormatter(logging.Formatter):
    """One JSON object per log line, tagged with the service name.

    Structured fields passed as ``extra={"extra_data": {...}}`` land under
    ``data``.
    """

    def __init__(self, service: Optional[str] = None):
        super().__init__()
        self.service = service

    def format(self, record):
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            entry["service"] = self.service
        data = getattr(record, "extra_data", None)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(debug: bool = False, service: Optional[str] = None):
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(service))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.handlers.clear()
    root.addHandler(handler)

    for name, level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
