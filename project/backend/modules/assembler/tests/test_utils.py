"""
Tests for assembler utilities.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from modules.assembler.utils import (
    check_ffmpeg_available,
    gather_or_cancel,
    read_file,
    run_ffmpeg_command,
    stderr_tail,
    write_file,
)
from shared.errors import AssemblyError, ConcatFailedError


class TestCheckFFmpegAvailable:
    """Tests for check_ffmpeg_available."""

    @patch('modules.assembler.utils.shutil.which')
    def test_both_binaries_present(self, mock_which):
        mock_which.return_value = "/usr/bin/ffmpeg"
        assert check_ffmpeg_available() is True
        assert mock_which.call_count == 2

    @patch('modules.assembler.utils.shutil.which')
    def test_ffprobe_missing(self, mock_which):
        mock_which.side_effect = lambda name: None if name == "ffprobe" else f"/usr/bin/{name}"
        assert check_ffmpeg_available() is False


class TestStderrTail:
    """Tests for stderr_tail."""

    def test_keeps_last_non_empty_lines(self):
        stderr = b"line 1\n\nline 2\nline 3\n   \nline 4\n"
        assert stderr_tail(stderr, lines=2) == "line 3 | line 4"

    def test_empty(self):
        assert stderr_tail(b"") == ""
        assert stderr_tail(None) == ""

    def test_invalid_utf8_is_replaced(self):
        assert "bad" in stderr_tail(b"bad \xff byte")


class TestRunFFmpegCommand:
    """Tests for run_ffmpeg_command."""

    @pytest.mark.asyncio
    @patch('modules.assembler.utils.asyncio.create_subprocess_exec')
    async def test_success_returns_stdout(self, mock_subprocess, process_factory):
        mock_subprocess.return_value = process_factory(stdout=b"12.5\n")

        stdout = await run_ffmpeg_command(["ffprobe", "-i", "in.mp3"], run_id="run-1")

        assert stdout == b"12.5\n"

    @pytest.mark.asyncio
    @patch('modules.assembler.utils.asyncio.create_subprocess_exec')
    async def test_argv_passed_without_shell(self, mock_subprocess, process_factory):
        mock_subprocess.return_value = process_factory()
        cmd = ["ffmpeg", "-i", "/tmp/it's a clip; rm -rf.mp4", "out.mp4"]

        await run_ffmpeg_command(cmd, run_id="run-1")

        args, kwargs = mock_subprocess.call_args
        assert list(args) == cmd
        assert "shell" not in kwargs
        assert kwargs["stdin"] == asyncio.subprocess.DEVNULL

    @pytest.mark.asyncio
    @patch('modules.assembler.utils.asyncio.create_subprocess_exec')
    async def test_failure_raises_given_error_with_stderr_tail(self, mock_subprocess, process_factory):
        mock_subprocess.return_value = process_factory(
            returncode=1,
            stderr=b"ffmpeg version 6\nInput #0\nInvalid data found when processing input\n"
        )

        with pytest.raises(ConcatFailedError) as exc_info:
            await run_ffmpeg_command(
                ["ffmpeg", "-f", "concat"],
                run_id="run-1",
                error_cls=ConcatFailedError,
                failure_message="FFmpeg concat failed"
            )

        assert exc_info.value.message == "FFmpeg concat failed"
        assert "Invalid data found" in exc_info.value.detail
        assert exc_info.value.stage == "concat"

    @pytest.mark.asyncio
    @patch('modules.assembler.utils.asyncio.create_subprocess_exec')
    async def test_failure_without_stderr_reports_exit_code(self, mock_subprocess, process_factory):
        mock_subprocess.return_value = process_factory(returncode=69)

        with pytest.raises(AssemblyError) as exc_info:
            await run_ffmpeg_command(["ffmpeg"], run_id="run-1")

        assert exc_info.value.detail == "exit code 69"

    @pytest.mark.asyncio
    @patch('modules.assembler.utils.asyncio.create_subprocess_exec')
    async def test_missing_binary(self, mock_subprocess):
        mock_subprocess.side_effect = FileNotFoundError("ffmpeg")

        with pytest.raises(AssemblyError) as exc_info:
            await run_ffmpeg_command(["ffmpeg", "-version"], run_id="run-1")

        assert "ffmpeg not found" in str(exc_info.value)

    @pytest.mark.asyncio
    @patch('modules.assembler.utils.asyncio.create_subprocess_exec')
    async def test_cancellation_kills_child(self, mock_subprocess):
        process = MagicMock()
        process.pid = 99
        process.returncode = None
        process.kill = MagicMock()
        process.wait = AsyncMock(return_value=-9)

        async def hang():
            await asyncio.sleep(3600)

        process.communicate = hang
        mock_subprocess.return_value = process

        task = asyncio.create_task(run_ffmpeg_command(["ffmpeg", "-i", "x"], run_id="run-1"))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        process.kill.assert_called_once()
        process.wait.assert_awaited_once()


class TestGatherOrCancel:
    """Tests for gather_or_cancel."""

    @pytest.mark.asyncio
    async def test_results_in_argument_order(self):
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        assert await gather_or_cancel(value("a", 0.02), value("b", 0)) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_failure_cancels_siblings(self):
        sibling_cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                sibling_cancelled.set()
                raise

        async def fail():
            await asyncio.sleep(0.01)
            raise ConcatFailedError("boom")

        with pytest.raises(ConcatFailedError):
            await gather_or_cancel(slow(), fail())

        assert sibling_cancelled.is_set()


class TestFileHelpers:
    """Tests for write_file/read_file."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, tmp_path):
        path = tmp_path / "data.bin"
        await write_file(path, b"\x00\x01payload")
        assert await read_file(path) == b"\x00\x01payload"
