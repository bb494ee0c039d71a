import json
import logging
import os
import sys
import time
from typing import Any, Dict, Optional


class ConsoleFormatter(logging.Formatter):
    """Bare progress lines; warnings and errors carry a severity tag."""

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if record.levelno >= logging.WARNING:
            msg = f"    [{record.levelname}] {msg}"
        if record.exc_info:
            msg = msg + "\n" + self.formatException(record.exc_info)
        return msg


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in ("step", "cmd"):
            if hasattr(record, k):
                payload[k] = getattr(record, k)

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, separators=(",", ":"))


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    lvl = (level or os.environ.get("CAPTUREAP_LOG_LEVEL") or "INFO").upper()
    kind = (fmt or os.environ.get("CAPTUREAP_LOG_FORMAT") or "text").lower()

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, lvl, logging.INFO))

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter() if kind == "json" else ConsoleFormatter())
    root.addHandler(handler)
