"""
Media probing for assembler module.

Audio duration discovery and video stream inspection via ffprobe.
"""
import math
from fractions import Fraction
from pathlib import Path
from typing import Any, Dict

from shared.config import settings
from shared.errors import ProbeFailedError
from shared.logging import get_logger
from .utils import run_ffmpeg_command

logger = get_logger("assembler.probe")


async def probe_duration(path: Path, run_id: str) -> float:
    """
    Get container duration in seconds using ffprobe.

    Args:
        path: Path to audio (or video) file
        run_id: Run ID for logging

    Returns:
        Duration in seconds (finite and positive)

    Raises:
        ProbeFailedError: If ffprobe fails or the duration is unusable
    """
    cmd = [
        settings.ffprobe_binary,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path)
    ]
    stdout = await run_ffmpeg_command(
        cmd,
        run_id=run_id,
        error_cls=ProbeFailedError,
        failure_message="ffprobe failed to get duration"
    )

    raw = stdout.decode(errors="replace").strip()
    try:
        duration = float(raw)
    except ValueError as e:
        raise ProbeFailedError("Could not parse duration", repr(raw)) from e

    if not math.isfinite(duration) or duration <= 0:
        raise ProbeFailedError("Invalid duration", f"{duration}s")

    logger.info(
        f"Probed duration {duration:.3f}s for {path.name}",
        extra={"run_id": run_id, "duration": duration}
    )
    return duration


async def probe_video_stream(path: Path, run_id: str) -> Dict[str, Any]:
    """
    Get properties of the first video stream.

    Returns:
        Dictionary with codec_name, width, height, pix_fmt and fps

    Raises:
        ProbeFailedError: If ffprobe fails or the output cannot be parsed
    """
    cmd = [
        settings.ffprobe_binary,
        "-v", "error",
        "-select_streams", "v:0",
        "-show_entries", "stream=codec_name,width,height,pix_fmt,r_frame_rate",
        "-of", "default=noprint_wrappers=1",
        str(path)
    ]
    stdout = await run_ffmpeg_command(
        cmd,
        run_id=run_id,
        error_cls=ProbeFailedError,
        failure_message=f"ffprobe failed to read video stream of {path.name}"
    )

    fields = {}
    for line in stdout.decode(errors="replace").splitlines():
        if "=" in line:
            key, value = line.split("=", 1)
            fields[key.strip()] = value.strip()

    try:
        # r_frame_rate is a fraction such as "30/1"
        fps = float(Fraction(fields["r_frame_rate"]))
        return {
            "codec_name": fields["codec_name"],
            "width": int(fields["width"]),
            "height": int(fields["height"]),
            "pix_fmt": fields["pix_fmt"],
            "fps": fps,
        }
    except (KeyError, ValueError, ZeroDivisionError) as e:
        raise ProbeFailedError(f"Could not parse video stream of {path.name}", str(e)) from e
