# byte_vision/services/completion.py
"""
Request handling for the `generate_completion` tool.

The service validates the prompt, derives the request deadline from the
configured timeout, builds the llama-cli arguments, runs the program and maps
every outcome to the text the MCP client sees. No outcome is raised to the
transport; failures become tool-level error text.
"""
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from byte_vision.executors.llama_cli_exec import execute
from byte_vision.schemas.completion import CompletionArguments, ToolResponse
from byte_vision.schemas.execution import Cancelled, Output, TimedOut
from byte_vision.schemas.llama_cli import LlamaCliConfig
from byte_vision.schemas.settings import AppSettings
from byte_vision.utils.context import RequestContext
from byte_vision.utils.exec_common import map_exception_to_error_type
from byte_vision.utils.llama_args import resolve
from byte_vision.utils.log_sinks import request_id_context
from byte_vision.utils.logger import setup_logger

logger = setup_logger(__name__)

EMPTY_PROMPT_MESSAGE = "Error: Prompt cannot be empty"
CANCELLED_MESSAGE = "Error: Completion cancelled"


@dataclass
class CompletionMetrics:
    """Running totals across all requests served by one service instance."""

    request_count: int = 0
    success_count: int = 0
    error_count: int = 0
    timeout_count: int = 0
    cancelled_count: int = 0
    total_duration_s: float = 0.0

    def average_duration_s(self) -> float:
        if not self.request_count:
            return 0.0
        return self.total_duration_s / self.request_count

    def snapshot(self) -> Dict[str, Any]:
        data = asdict(self)
        data["average_duration_s"] = round(self.average_duration_s(), 3)
        data["total_duration_s"] = round(self.total_duration_s, 3)
        return data


def timeout_message(seconds: int) -> str:
    return f"Error: Completion timed out after {seconds} seconds"


def failure_message(error: BaseException) -> str:
    return f"Error generating completion: {error}"


class CompletionService:
    """Serves completion requests against one static configuration.

    Metrics are only touched from the event loop thread.
    """

    def __init__(self, settings: AppSettings, cli_config: LlamaCliConfig):
        self.settings = settings
        self.cli_config = cli_config
        self.metrics = CompletionMetrics()

    async def generate(
        self,
        arguments: CompletionArguments,
        parent: Optional[RequestContext] = None,
    ) -> ToolResponse:
        """Run one completion and return the tool response.

        :param arguments: Prompt and per-request overrides.
        :type arguments: CompletionArguments
        :param parent: Context whose cancellation aborts this request, usually
            the server's shutdown context.
        :type parent: Optional[RequestContext]
        :return: The completion text, or a human-readable error as text.
        :rtype: ToolResponse
        """
        started = time.monotonic()
        self.metrics.request_count += 1
        token = request_id_context.set(uuid.uuid4().hex[:12])
        try:
            return await self._generate(arguments, parent or RequestContext())
        finally:
            duration = time.monotonic() - started
            self.metrics.total_duration_s += duration
            logger.info(
                f"Request completed in {duration:.3f}s "
                f"(avg: {self.metrics.average_duration_s():.3f}s)"
            )
            request_id_context.reset(token)

    async def _generate(
        self, arguments: CompletionArguments, parent: RequestContext
    ) -> ToolResponse:
        if not arguments.prompt:
            logger.info("Empty prompt received")
            self.metrics.error_count += 1
            return ToolResponse.text(EMPTY_PROMPT_MESSAGE, is_error=True)

        logger.info(f"Handling completion request for prompt: {arguments.prompt[:100]}...")

        timeout_seconds = self.settings.effective_timeout()
        logger.info(f"Starting completion with timeout of {timeout_seconds} seconds")

        argv = resolve(self.cli_config, arguments)
        with parent.with_timeout(timeout_seconds) as ctx:
            result = await execute(self.settings.llama_cli_path, argv, ctx)

        if isinstance(result, Output):
            self.metrics.success_count += 1
            text = result.text()
            logger.info(
                f"Completion generated successfully, output length: {len(text)} chars"
            )
            return ToolResponse.text(text)

        if isinstance(result, TimedOut):
            self.metrics.timeout_count += 1
            logger.warning(f"Completion timed out after {timeout_seconds} seconds")
            return ToolResponse.text(timeout_message(timeout_seconds), is_error=True)

        if isinstance(result, Cancelled):
            self.metrics.cancelled_count += 1
            logger.info("Completion cancelled before llama-cli finished")
            return ToolResponse.text(CANCELLED_MESSAGE, is_error=True)

        # The remaining variant is Failed.
        self.metrics.error_count += 1
        logger.error(
            f"Error generating completion: {result.error}",
            extra={"error_type": map_exception_to_error_type(result.error)},
        )
        return ToolResponse.text(failure_message(result.error), is_error=True)
