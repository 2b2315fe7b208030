# byte_vision/executors/llama_cli_exec.py
"""
Runs the external llama-cli program under a cancellable request context.

The process is launched asynchronously and its completion raced against the
context. Whichever finishes first decides the outcome; when the context wins,
the child is killed and reaped before returning, so neither the process nor
the task waiting on it outlives the call.
"""
import asyncio
from typing import Optional, Sequence

from byte_vision.exceptions import DeadlineExceeded, ProcessExitError
from byte_vision.schemas.execution import (
    Cancelled,
    ExecutionResult,
    Failed,
    Output,
    TimedOut,
)
from byte_vision.utils.context import RequestContext
from byte_vision.utils.exec_common import now_ms
from byte_vision.utils.logger import setup_logger

logger = setup_logger(__name__)


def _context_result(ctx: RequestContext) -> ExecutionResult:
    if isinstance(ctx.err, DeadlineExceeded):
        return TimedOut()
    return Cancelled()


async def _reap(
    proc: asyncio.subprocess.Process, waiter: Optional[asyncio.Future]
) -> None:
    """Kill the child if it is still running and release everything tied to it."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    if waiter is not None and not waiter.done():
        waiter.cancel()
        await asyncio.gather(waiter, return_exceptions=True)
    await proc.wait()


async def execute(
    executable_path: str, argv: Sequence[str], ctx: RequestContext
) -> ExecutionResult:
    """Run `executable_path argv...` and classify how it ended.

    Standard output is captured in full. Standard error is captured separately
    and only attached to a `ProcessExitError` for logging.

    :param executable_path: Path of the program to run.
    :type executable_path: str
    :param argv: Arguments, not including the program itself.
    :type argv: Sequence[str]
    :param ctx: Deadline and cancellation source for this run.
    :type ctx: RequestContext
    :return: Exactly one of Output, Failed, TimedOut or Cancelled.
    :rtype: ExecutionResult
    :raises asyncio.CancelledError: If the calling task itself is cancelled;
        the child is killed and reaped first.
    """
    if ctx.done:
        logger.info(f"Context already done before launch: {ctx.err}")
        return _context_result(ctx)

    started = now_ms()
    try:
        proc = await asyncio.create_subprocess_exec(
            executable_path,
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        # FileNotFoundError, PermissionError and friends
        logger.error(f"Failed to launch {executable_path}: {e}")
        return Failed(e)

    logger.debug(
        "llama-cli started",
        extra={"pid": proc.pid, "executable": executable_path, "argc": len(argv)},
    )

    waiter = asyncio.ensure_future(proc.communicate())
    watcher = asyncio.ensure_future(ctx.wait())
    try:
        done, _ = await asyncio.wait(
            {waiter, watcher}, return_when=asyncio.FIRST_COMPLETED
        )
        if waiter in done:
            try:
                stdout, stderr = waiter.result()
            except OSError as e:
                logger.error(f"I/O error while reading llama-cli output: {e}")
                return Failed(e)
            elapsed = now_ms() - started
            if proc.returncode != 0:
                error = ProcessExitError(proc.returncode, stderr)
                logger.error(
                    f"llama-cli exited with status {proc.returncode} after {elapsed} ms",
                    extra={"stderr_tail": error.stderr_tail()},
                )
                return Failed(error)
            logger.info(
                f"llama-cli finished in {elapsed} ms, {len(stdout)} bytes of output"
            )
            return Output(stdout)

        logger.warning(
            f"Context done while llama-cli (pid {proc.pid}) was running: {ctx.err}"
        )
        return _context_result(ctx)
    finally:
        if not watcher.done():
            watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)
        await _reap(proc, waiter)
