# byte_vision/serve.py
"""
Builds and runs the FastAPI application serving the MCP endpoint.

The lifespan owns a root RequestContext. Every completion derives its own
timed context from it, so when the server shuts down, cancelling the root
ends all in-flight llama-cli runs (they report "cancelled") before the
process exits.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from byte_vision import __version__
from byte_vision.exceptions import ByteVisionError, ConfigurationError
from byte_vision.schemas.llama_cli import LlamaCliConfig
from byte_vision.schemas.settings import AppSettings
from byte_vision.services.completion import CompletionService
from byte_vision.utils.config_loader import load_config
from byte_vision.utils.context import RequestContext
from byte_vision.utils.logger import (
    close_file_logging,
    configure_file_logging,
    setup_logger,
)
from byte_vision.web import build_api_router

logger = setup_logger(__name__)

# Upper bound on waiting for in-flight requests once shutdown starts.
SHUTDOWN_TIMEOUT_SECONDS = 30


class ShutdownAwareServer(uvicorn.Server):
    """Cancels the app's shutdown context as soon as a stop signal arrives.

    Without this, uvicorn would wait for running completions to finish
    before the lifespan shutdown ever cancels them.
    """

    def handle_exit(self, sig, frame) -> None:
        state = self.config.app.state
        loop = getattr(state, "loop", None)
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(state.shutdown_context.cancel)
        super().handle_exit(sig, frame)


def create_app(
    settings: AppSettings,
    cli_config: LlamaCliConfig,
    *,
    file_logging: bool = True,
) -> FastAPI:
    """Create the application for an already-loaded configuration.

    :param settings: Server settings.
    :type settings: AppSettings
    :param cli_config: Static llama-cli options.
    :type cli_config: LlamaCliConfig
    :param file_logging: Mirror logs into the configured log file.
    :type file_logging: bool
    :return: The configured FastAPI app.
    :rtype: FastAPI
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if file_logging:
            configure_file_logging(settings.app_log_path, settings.app_log_file_name)
        logger.info("Application starting...")
        app.state.loop = asyncio.get_running_loop()
        shutdown_ctx = app.state.shutdown_context
        try:
            yield
        finally:
            logger.info("Shutting down server...")
            shutdown_ctx.cancel()
            logger.info("Application shutdown complete")
            if file_logging:
                close_file_logging()

    app = FastAPI(
        title="Byte Vision MCP",
        description="MCP server providing text completion through a local llama-cli.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.completion_service = CompletionService(settings, cli_config)
    app.state.shutdown_context = RequestContext()
    app.state.loop = None
    app.include_router(build_api_router(settings.end_point))

    @app.exception_handler(ByteVisionError)
    async def byte_vision_exception_handler(request: Request, exc: ByteVisionError):
        """Return unexpected application errors as structured JSON."""
        logger.error(f"Caught a ByteVisionError: {exc.__class__.__name__}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": exc.__class__.__name__, "detail": str(exc)},
        )

    return app


def run_server(env_file: Optional[str] = None) -> None:
    """Load configuration and serve until interrupted (SIGINT/SIGTERM).

    :raises ConfigurationError: If no llama-cli path is configured.
    """
    settings, cli_config = load_config(env_file)
    if not settings.llama_cli_path:
        raise ConfigurationError("LLamaCliPath is not configured.")

    host, port = settings.bind_address()
    app = create_app(settings, cli_config)
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_config=None,
        timeout_graceful_shutdown=SHUTDOWN_TIMEOUT_SECONDS,
    )
    logger.info(f"Starting MCP HTTP server on {settings.http_port}{settings.end_point}")
    ShutdownAwareServer(config).run()
