"""
Final composition for assembler module.

Loops the sequenced stream, cuts it to the audio duration and muxes it with
the audio track as H.264/AAC.
"""
from pathlib import Path
from typing import Optional, Tuple

from shared.config import settings
from shared.errors import MuxFailedError, ProbeFailedError
from shared.logging import get_logger
from .config import (
    DURATION_TOLERANCE,
    OUTPUT_AUDIO_BITRATE,
    OUTPUT_AUDIO_CODEC,
    OUTPUT_PIXEL_FORMAT,
    OUTPUT_PRESET,
    OUTPUT_VIDEO_CODEC,
)
from .ledger import ResourceLedger
from .probe import probe_duration
from .utils import run_ffmpeg_command

logger = get_logger("assembler.compositor")


def build_mux_command(
    sequenced_path: Path,
    audio_path: Path,
    audio_duration: float,
    output_path: Path
) -> list:
    """
    FFmpeg argv for loop + truncate + mux.

    -stream_loop -1 makes the video endless, so -t (the audio duration, as
    probed) and -shortest always end the output on the audio.
    """
    return [
        settings.ffmpeg_binary,
        "-nostdin",
        "-y",
        "-stream_loop", "-1",
        "-i", str(sequenced_path),
        "-i", str(audio_path),
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-t", str(audio_duration),
        "-c:v", OUTPUT_VIDEO_CODEC,
        "-preset", OUTPUT_PRESET,
        "-pix_fmt", OUTPUT_PIXEL_FORMAT,
        "-c:a", OUTPUT_AUDIO_CODEC,
        "-b:a", OUTPUT_AUDIO_BITRATE,
        "-movflags", "+faststart",
        "-shortest",
        str(output_path)
    ]


async def compose_output(
    sequenced_path: Path,
    audio_path: Path,
    audio_duration: float,
    ledger: ResourceLedger,
    run_id: str
) -> Tuple[Path, Optional[float]]:
    """
    Produce the final muxed video.

    Args:
        sequenced_path: Concatenated clip stream
        audio_path: Raw audio upload
        audio_duration: Probed audio duration in seconds
        ledger: Run ledger for the output file
        run_id: Run ID for logging

    Returns:
        Tuple of (output_path, output_duration); duration is None if the output
        could not be probed

    Raises:
        MuxFailedError: If ffmpeg fails or the output is empty
    """
    output_path = ledger.allocate("output", "output.mp4")

    logger.info(
        f"Muxing audio ({audio_duration:.3f}s) with looped video",
        extra={"run_id": run_id, "audio_duration": audio_duration}
    )

    await run_ffmpeg_command(
        build_mux_command(sequenced_path, audio_path, audio_duration, output_path),
        run_id=run_id,
        error_cls=MuxFailedError,
        failure_message="FFmpeg mux failed"
    )

    if not output_path.exists() or output_path.stat().st_size == 0:
        raise MuxFailedError("Final video not created")

    try:
        output_duration = await probe_duration(output_path, run_id)
    except ProbeFailedError as e:
        logger.warning(
            f"Could not measure output duration: {e}",
            extra={"run_id": run_id}
        )
        return output_path, None

    sync_drift = abs(output_duration - audio_duration)
    if sync_drift > DURATION_TOLERANCE:
        logger.warning(
            f"Output drift {sync_drift:.3f}s exceeds {DURATION_TOLERANCE}s tolerance",
            extra={"run_id": run_id, "sync_drift": sync_drift, "output_duration": output_duration}
        )
    else:
        logger.info(
            f"Audio synced (drift: {sync_drift:.3f}s)",
            extra={"run_id": run_id, "sync_drift": sync_drift}
        )

    return output_path, output_duration
