"""
Pytest fixtures for assembler tests.
"""
import asyncio
import subprocess
from pathlib import Path
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from modules.assembler.config import TARGET_PROFILE
from modules.assembler.ledger import ResourceLedger
from shared.models.media import InputAsset, NormalizedClip, UploadedFile

PROFILE_STREAM_OUTPUT = (
    f"codec_name={TARGET_PROFILE.ffprobe_codec_name}\n"
    f"width={TARGET_PROFILE.width}\n"
    f"height={TARGET_PROFILE.height}\n"
    f"pix_fmt={TARGET_PROFILE.pixel_format}\n"
    f"r_frame_rate={TARGET_PROFILE.fps}/1\n"
).encode()


def make_process(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""):
    """Mock of an asyncio subprocess that exits immediately."""
    process = MagicMock()
    process.pid = 4242
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock(return_value=returncode)
    return process


class FakeMediaTools:
    """
    Stand-in for create_subprocess_exec that behaves like ffmpeg/ffprobe.

    Output files are written for transcode/concat/mux, ffprobe answers with
    `duration` or the target profile. `fail_stage` makes that stage exit 1,
    `hang_stage` makes it block until killed.
    """

    def __init__(
        self,
        fail_stage: Optional[str] = None,
        hang_stage: Optional[str] = None,
        duration: bytes = b"12.5\n"
    ):
        self.fail_stage = fail_stage
        self.hang_stage = hang_stage
        self.duration = duration
        self.calls: List[tuple] = []
        self.manifests: List[str] = []
        self.killed: List[int] = []

    @staticmethod
    def stage_of(argv) -> str:
        if argv[0].endswith("ffprobe"):
            return "probe_stream" if "-select_streams" in argv else "probe"
        if "-stream_loop" in argv:
            return "mux"
        if "concat" in argv:
            return "concat"
        if "-an" in argv:
            return "transcode"
        return "unknown"

    def stages(self) -> List[str]:
        return [stage for stage, _ in self.calls]

    def __call__(self, *argv, **kwargs):
        stage = self.stage_of(argv)
        self.calls.append((stage, list(argv)))
        process = MagicMock()
        process.pid = 1000 + len(self.calls)
        process.returncode = None

        def kill():
            self.killed.append(process.pid)
            process.returncode = -9

        process.kill = MagicMock(side_effect=kill)
        process.wait = AsyncMock(return_value=-9)

        async def communicate():
            if stage == self.hang_stage:
                await asyncio.sleep(3600)
            if stage == self.fail_stage:
                process.returncode = 1
                return b"", b"ffmpeg version 6.0\nInvalid data found when processing input\n"
            if stage == "concat":
                manifest = Path(argv[argv.index("-i") + 1])
                self.manifests.append(manifest.read_text())
            if stage in ("transcode", "concat", "mux"):
                Path(argv[-1]).write_bytes(b"\x00" * 2048)
            process.returncode = 0
            if stage == "probe":
                return self.duration, b""
            if stage == "probe_stream":
                return PROFILE_STREAM_OUTPUT, b""
            return b"", b""

        process.communicate = communicate
        return process


@pytest.fixture
def run_id():
    return uuid4().hex


@pytest.fixture
def ledger(tmp_path, run_id):
    ledger = ResourceLedger(run_id, tmp_path)
    yield ledger
    ledger.release_all()


@pytest.fixture
def make_video_asset(tmp_path):
    """Factory writing a raw clip to disk and returning its InputAsset."""
    def _make(index: int, data: bytes = b"raw video" * 100) -> InputAsset:
        path = tmp_path / f"raw-{index}.mp4"
        path.write_bytes(data)
        return InputAsset(kind="video", index=index, filename=f"video{index}.mp4", path=path)
    return _make


@pytest.fixture
def make_normalized_clip(tmp_path):
    """Factory for NormalizedClip objects backed by real files."""
    def _make(index: int, create: bool = True, name: Optional[str] = None) -> NormalizedClip:
        path = tmp_path / (name or f"normalized-{index}.mp4")
        if create:
            path.write_bytes(b"\x00" * 1024)
        return NormalizedClip(index=index, path=path, profile=TARGET_PROFILE)
    return _make


@pytest.fixture
def sample_uploads():
    """Factory for (audio, videos) upload pairs."""
    def _make(clip_count: int = 3):
        audio = UploadedFile(filename="song.mp3", content_type="audio/mpeg", data=b"ID3" + b"\x00" * 2048)
        videos = [
            UploadedFile(filename=f"video{i}.mp4", content_type="video/mp4", data=b"\x00" * 4096)
            for i in range(clip_count)
        ]
        return audio, videos
    return _make


def create_test_video(output_path: Path, duration: float = 1.0, color: str = "black",
                      width: int = 320, height: int = 240, rate: int = 25):
    """Encode a solid-color H.264 clip with FFmpeg's lavfi source."""
    cmd = [
        "ffmpeg", "-nostdin", "-y",
        "-f", "lavfi",
        "-i", f"color=c={color}:s={width}x{height}:d={duration}:r={rate}",
        "-c:v", "libx264",
        "-preset", "ultrafast",
        "-pix_fmt", "yuv420p",
        str(output_path)
    ]
    subprocess.run(cmd, capture_output=True, check=True, timeout=60)


def create_test_audio(output_path: Path, duration: float = 1.0):
    """Encode a sine tone of the given duration."""
    cmd = [
        "ffmpeg", "-nostdin", "-y",
        "-f", "lavfi",
        "-i", f"sine=frequency=440:duration={duration}",
        "-c:a", "aac",
        str(output_path)
    ]
    subprocess.run(cmd, capture_output=True, check=True, timeout=60)


@pytest.fixture
def create_test_video_file():
    return create_test_video


@pytest.fixture
def create_test_audio_file():
    return create_test_audio


@pytest.fixture
def process_factory():
    return make_process


@pytest.fixture
def media_tools():
    """Factory for FakeMediaTools instances."""
    return FakeMediaTools
