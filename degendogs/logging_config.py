"""JSON logging for the holder-gate service and client.

One JSON object per line on stdout; DD_LOG_FILE adds an append-mode copy.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Record attributes passed via `extra=` that are promoted into the payload
EXTRA_FIELDS = ("request_id", "route", "remote_addr", "fid")

# Outbound-call libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in EXTRA_FIELDS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(log_file: str = None, log_level: str = None):
    """Install JSON handlers on the root logger.

    Args:
        log_file: Append-mode log file. Defaults to DD_LOG_FILE; unset means
            console only.
        log_level: Root level name. Defaults to DD_LOG_LEVEL or 'INFO'.
    """
    formatter = JsonFormatter()
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    log_file = log_file or os.getenv("DD_LOG_FILE", "")
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root = logging.getLogger()
    level_name = (log_level or os.getenv("DD_LOG_LEVEL", "INFO")).upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.handlers = handlers

    # Request URLs carry FIDs and addresses; keep them at DEBUG only
    if root.level > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
