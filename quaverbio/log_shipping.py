from __future__ import annotations

import json
import logging
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener

import requests

from .config import Settings


APP_NAME = "quaver-bio"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOKI_PUSH_PATH = "/loki/api/v1/push"
LOKI_TIMEOUT_SECONDS = 5

# TRACE has no stdlib counterpart and maps to DEBUG.
LOG_LEVELS: dict[str, int] = {
    "TRACE": logging.DEBUG,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def parse_log_level(name: str) -> int:
    level = LOG_LEVELS.get(name.strip().upper())
    if level is None:
        raise ValueError(
            f"Invalid log level '{name}'. Valid options are TRACE, DEBUG, INFO, WARN, and ERROR"
        )
    return level


class LokiHandler(logging.Handler):
    """Push log records to a Loki server, one request per record.

    Meant to run behind a ``QueueListener`` so network latency never reaches
    the thread that logged. Failed pushes are counted in ``dropped`` and
    otherwise ignored.
    """

    def __init__(
        self,
        url: str,
        *,
        labels: dict[str, str] | None = None,
        timeout: float = LOKI_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        super().__init__()
        self.push_url = f"{url.rstrip('/')}{LOKI_PUSH_PATH}"
        self.labels = {"application": APP_NAME, **(labels or {})}
        self.timeout = timeout
        self.session = session or requests.Session()
        self.pid = os.getpid()
        self.dropped = 0

    def build_payload(self, record: logging.LogRecord) -> dict:
        line = json.dumps(
            {
                "message": record.getMessage(),
                "logger": record.name,
                "pid": str(self.pid),
            }
        )
        return {
            "streams": [
                {
                    "stream": {**self.labels, "level": record.levelname.lower()},
                    "values": [[str(int(record.created * 1_000_000_000)), line]],
                }
            ]
        }

    def emit(self, record: logging.LogRecord) -> None:
        try:
            response = self.session.post(
                self.push_url,
                json=self.build_payload(record),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException:
            self.dropped += 1


def configure_logging(settings: Settings, *, stream=None) -> QueueListener | None:
    """Install the stdout handler and, if configured, Loki forwarding.

    Returns the started ``QueueListener`` when Loki is enabled; the caller
    stops it on shutdown to flush pending records.
    """
    stdout_level = parse_log_level(settings.log_level)
    loki_level = parse_log_level(settings.loki_log_level)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    stdout_handler = logging.StreamHandler(stream or sys.stdout)
    stdout_handler.setLevel(stdout_level)
    stdout_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(stdout_handler)
    root.setLevel(stdout_level)

    # Keeps urllib3 connection chatter out of TRACE output.
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if not settings.loki_url:
        return None

    root.setLevel(min(stdout_level, loki_level))
    log_queue: queue.Queue = queue.Queue(-1)
    queue_handler = QueueHandler(log_queue)
    queue_handler.setLevel(loki_level)
    root.addHandler(queue_handler)

    listener = QueueListener(log_queue, LokiHandler(settings.loki_url), respect_handler_level=False)
    listener.start()
    logging.getLogger(__name__).debug(
        "Forwarding %s+ logs to Loki at %s", logging.getLevelName(loki_level), settings.loki_url
    )
    return listener
