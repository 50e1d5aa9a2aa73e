import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from BSMCP.services.shared.settings import LoggingConfig

ROOT_LOGGER_NAME = "BSMCP"


class JsonFormatter(logging.Formatter):
    """
    Formatter to output logs as JSON Lines.

    Records emitted through SearchLogger carry component/request_id/event/payload
    attributes; plain ``logging`` calls fall back to the logger name and message.
    """
    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "component": getattr(record, "component", record.name),
            "request_id": getattr(record, "request_id", None),
            "event": getattr(record, "event", record.getMessage()),
            "payload": getattr(record, "payload", {}),
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Install handlers on the package root logger.

    Handlers write to stderr only: stdout carries the MCP stdio protocol.
    Calling this more than once is a no-op apart from the level.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.getLevelName(config.level))

    if root.handlers:
        return root

    if config.format == "text":
        stream_handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
        )
        stream_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(JsonFormatter())
    root.addHandler(stream_handler)

    if config.directory:
        os.makedirs(config.directory, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(config.directory, "bsmcp.jsonl"))
        file_handler.setFormatter(JsonFormatter())
        root.addHandler(file_handler)

    root.propagate = False
    return root


class SearchLogger:
    def __init__(self, component_name: str):
        self.component = component_name
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}")

    def log(
        self,
        event: str,
        payload: Optional[Dict[str, Any]] = None,
        level: int = logging.INFO,
        request_id: Optional[str] = None,
        exc_info: bool = False,
    ):
        """
        Log a structured pipeline event.

        :param event: The name of the event (e.g., 'cache_hit', 'mock_fallback')
        :param payload: Dictionary containing the specific data
        :param request_id: Identifier of the tool call the event belongs to
        """
        if payload is None:
            payload = {}

        extra = {
            "component": self.component,
            "request_id": request_id,
            "event": event,
            "payload": payload,
        }

        # 'event' doubles as the message for non-JSON handlers
        self.logger.log(level, event, extra=extra, exc_info=exc_info)

    def warning(self, event: str, payload: Optional[Dict[str, Any]] = None, **kwargs):
        self.log(event, payload, level=logging.WARNING, **kwargs)

    def error(self, event: str, payload: Optional[Dict[str, Any]] = None, **kwargs):
        self.log(event, payload, level=logging.ERROR, **kwargs)
