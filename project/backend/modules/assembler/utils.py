"""
Utility functions for assembler module.

FFmpeg command execution, availability checks and task fan-out helpers.
"""
import asyncio
import shutil
from pathlib import Path
from typing import Awaitable, List, Optional, Type, TypeVar

from shared.config import settings
from shared.errors import AssemblyError
from shared.logging import get_logger
from .config import STDERR_TAIL_LINES

T = TypeVar("T")

logger = get_logger("assembler.utils")


def check_ffmpeg_available() -> bool:
    """
    Check if FFmpeg and ffprobe are installed and available in PATH.

    Returns:
        True if both binaries are available, False otherwise
    """
    return (
        shutil.which(settings.ffmpeg_binary) is not None
        and shutil.which(settings.ffprobe_binary) is not None
    )


def stderr_tail(stderr: Optional[bytes], lines: int = STDERR_TAIL_LINES) -> str:
    """Last non-empty lines of a tool's stderr, for error messages."""
    if not stderr:
        return ""
    text = stderr.decode(errors="replace")
    kept = [line.strip() for line in text.splitlines() if line.strip()]
    return " | ".join(kept[-lines:])


async def run_ffmpeg_command(
    cmd: List[str],
    run_id: str,
    error_cls: Type[AssemblyError] = AssemblyError,
    failure_message: str = "FFmpeg command failed",
) -> bytes:
    """
    Run an ffmpeg/ffprobe argument vector and wait for it to exit.

    The command is never passed through a shell. If the awaiting task is
    cancelled (deadline or client disconnect) the child is killed and reaped
    before the cancellation propagates.

    Args:
        cmd: Command as list of strings
        run_id: Run ID for logging
        error_cls: Error raised on a non-zero exit
        failure_message: Message prefix for the raised error

    Returns:
        Captured stdout

    Raises:
        error_cls: If the binary is missing or exits non-zero
    """
    logger.info(
        f"Running command: {' '.join(cmd)}",
        extra={"run_id": run_id, "command": cmd}
    )

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
    except FileNotFoundError as e:
        raise error_cls(failure_message, f"{cmd[0]} not found") from e

    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        if process.returncode is None:
            logger.warning(
                f"Killing {cmd[0]} (pid {process.pid}) after cancellation",
                extra={"run_id": run_id, "pid": process.pid}
            )
            process.kill()
            await process.wait()
        raise

    if process.returncode != 0:
        detail = stderr_tail(stderr) or f"exit code {process.returncode}"
        logger.error(
            f"{failure_message}: {detail}",
            extra={"run_id": run_id, "returncode": process.returncode, "command": cmd}
        )
        raise error_cls(failure_message, detail)

    return stdout


async def gather_or_cancel(*aws: Awaitable[T]) -> List[T]:
    """
    Await all awaitables; on the first failure cancel the rest and re-raise.

    Unlike a bare asyncio.gather, no sibling is left running (and holding a
    subprocess) after one of them fails.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def write_file(path: Path, data: bytes) -> None:
    """Write bytes without blocking the event loop."""
    await asyncio.to_thread(path.write_bytes, data)


async def read_file(path: Path) -> bytes:
    """Read bytes without blocking the event loop."""
    return await asyncio.to_thread(path.read_bytes)
