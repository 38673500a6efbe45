from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILENAME = "loadgen.jsonl"


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, for the LOG_DIR file sink."""

    def format(self, record: logging.LogRecord) -> str:
        out = {
            "ts": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            out["exc"] = self.formatException(record.exc_info)
        return json.dumps(out)


def configure_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    log_dir = log_dir or os.getenv("LOG_DIR")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(logging.Formatter(LOG_FORMAT))

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, LOG_FILENAME), encoding="utf-8")
        file_handler.setFormatter(JsonLineFormatter())
        handlers.append(file_handler)

    logging.basicConfig(level=level.upper(), handlers=handlers, force=True)
    # per-request transport chatter drowns the run at 600 req/s
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
