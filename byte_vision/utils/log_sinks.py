# byte_vision/utils/log_sinks.py
"""
Custom logging components for the Byte Vision MCP server.

A context variable carries the id of the completion request being handled, so
every log line emitted while serving that request can be correlated without
passing the id down the call stack.
"""
import contextvars
import logging
from typing import Optional

request_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)


class RequestIdFilter(logging.Filter):
    """
    A logging filter that injects the current request_id from the contextvar
    into the log record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Adds the request_id to the log record.

        :param record: The log record being processed.
        :type record: logging.LogRecord
        :return: Always returns True to allow the record to be processed.
        :rtype: bool
        """
        record.request_id = request_id_context.get()
        return True
