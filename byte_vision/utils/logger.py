# byte_vision/utils/logger.py
"""
Centralized logging setup for the Byte Vision MCP server.

The root logger writes structured JSON lines to stdout and, once the server
knows its log directory, to an append-mode log file as well, so the console
and the file carry the same records.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Any, MutableMapping, Optional

from pythonjsonlogger import jsonlogger

from byte_vision.utils.log_sinks import RequestIdFilter

LOG_LEVEL_VARIABLE = "BYTE_VISION_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(request_id)s %(message)s"

_LOGGING_CONFIGURED = False
_FILE_HANDLER: Optional[logging.Handler] = None


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Extends the standard logging adapter to support structured logging.

    A dictionary passed via `extra` is nested under `extra_data` and then
    merged into the JSON record by the formatter.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        original_extra_content = kwargs.get("extra")
        if original_extra_content is not None:
            kwargs["extra"] = {"extra_data": original_extra_content}
        return msg, kwargs


class _JsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        extra_data = log_record.pop("extra_data", None)
        if isinstance(extra_data, dict):
            for key, value in extra_data.items():
                log_record.setdefault(key, value)


def _make_formatter() -> logging.Formatter:
    return _JsonFormatter(LOG_FORMAT)


def setup_logger(name: str) -> StructuredLoggerAdapter:
    """Sets up the root logger and returns a structured child logger.

    On the first call the root logger gets a JSON stdout handler; later calls
    only look up the named logger.

    :param name: The name of the logger, typically `__name__`.
    :type name: str
    :return: A `StructuredLoggerAdapter` instance ready for use.
    :rtype: StructuredLoggerAdapter
    """
    global _LOGGING_CONFIGURED

    if not _LOGGING_CONFIGURED:
        root_logger = logging.getLogger()
        log_level_str = os.getenv(LOG_LEVEL_VARIABLE, "info").upper()
        root_logger.setLevel(getattr(logging, log_level_str, logging.INFO))

        if root_logger.hasHandlers():
            root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(_make_formatter())
        console_handler.addFilter(RequestIdFilter())
        root_logger.addHandler(console_handler)
        _LOGGING_CONFIGURED = True

    return StructuredLoggerAdapter(logging.getLogger(name), {})


def configure_file_logging(log_dir: str, file_name: str) -> Path:
    """Mirror all log records into `log_dir/file_name` (append mode).

    Calling it again replaces the previous file handler.

    :param log_dir: Directory for the log file; created if missing.
    :param file_name: Name of the log file.
    :return: The full path of the log file.
    :raises OSError: If the directory or file cannot be created.
    """
    global _FILE_HANDLER

    setup_logger(__name__)
    root_logger = logging.getLogger()

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / file_name

    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    handler.setFormatter(_make_formatter())
    handler.addFilter(RequestIdFilter())

    if _FILE_HANDLER is not None:
        root_logger.removeHandler(_FILE_HANDLER)
        _FILE_HANDLER.close()
    root_logger.addHandler(handler)
    _FILE_HANDLER = handler

    root_logger.info(f"Logging initialized - writing to {log_path}")
    return log_path


def close_file_logging() -> None:
    """Detach and close the log file handler, if any."""
    global _FILE_HANDLER

    if _FILE_HANDLER is not None:
        logging.getLogger().removeHandler(_FILE_HANDLER)
        _FILE_HANDLER.close()
        _FILE_HANDLER = None
