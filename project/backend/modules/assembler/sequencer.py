"""
Clip sequencing for assembler module.

Concatenates normalized clips in index order with the ffmpeg concat demuxer,
using stream copy. Stream copy is only valid because every clip shares one
encoding profile, so that is checked before ffmpeg runs.
"""
from pathlib import Path
from typing import List

from shared.config import settings
from shared.errors import ConcatFailedError, ProbeFailedError
from shared.logging import get_logger
from shared.models.media import NormalizedClip, TargetProfile
from .ledger import ResourceLedger
from .probe import probe_video_stream
from .utils import run_ffmpeg_command, write_file

logger = get_logger("assembler.sequencer")

# Allowed difference between probed and target frame rate
FPS_TOLERANCE = 0.01


def escape_concat_path(path: Path) -> str:
    """
    Render one concat manifest line.

    The demuxer reads single-quoted strings; a literal quote is written as
    close-quote, escaped quote, reopen-quote.
    """
    escaped = str(path).replace("'", "'\\''")
    return f"file '{escaped}'"


def build_concat_manifest(clips: List[NormalizedClip]) -> str:
    """Manifest text listing clips in index order."""
    ordered = sorted(clips, key=lambda c: c.index)
    return "\n".join(escape_concat_path(clip.path.absolute()) for clip in ordered) + "\n"


def validate_clips(clips: List[NormalizedClip]) -> TargetProfile:
    """
    Check the sequencer preconditions.

    Returns:
        The profile shared by all clips

    Raises:
        ConcatFailedError: Empty list, duplicate index, missing file or mixed profiles
    """
    if not clips:
        raise ConcatFailedError("No clips to concatenate")

    indices = [clip.index for clip in clips]
    if len(set(indices)) != len(indices):
        raise ConcatFailedError("Duplicate clip indices", str(sorted(indices)))

    for clip in clips:
        if not clip.path.is_file():
            raise ConcatFailedError(f"Normalized clip {clip.index} missing", str(clip.path))

    profile = clips[0].profile
    for clip in clips[1:]:
        if clip.profile != profile:
            raise ConcatFailedError(
                f"Clip {clip.index} profile differs from clip {clips[0].index}; stream copy would corrupt output"
            )
    return profile


async def verify_clip_streams(clips: List[NormalizedClip], profile: TargetProfile, run_id: str) -> None:
    """Probe each clip and reject any whose actual stream differs from the profile."""
    for clip in sorted(clips, key=lambda c: c.index):
        try:
            props = await probe_video_stream(clip.path, run_id)
        except ProbeFailedError as e:
            raise ConcatFailedError(f"Could not verify clip {clip.index}", str(e)) from e

        mismatches = []
        if props["codec_name"] != profile.ffprobe_codec_name:
            mismatches.append(f"codec {props['codec_name']}")
        if (props["width"], props["height"]) != (profile.width, profile.height):
            mismatches.append(f"size {props['width']}x{props['height']}")
        if props["pix_fmt"] != profile.pixel_format:
            mismatches.append(f"pix_fmt {props['pix_fmt']}")
        if abs(props["fps"] - profile.fps) > FPS_TOLERANCE:
            mismatches.append(f"fps {props['fps']:.3f}")

        if mismatches:
            raise ConcatFailedError(
                f"Clip {clip.index} does not match target profile", ", ".join(mismatches)
            )


async def concatenate_clips(
    clips: List[NormalizedClip],
    ledger: ResourceLedger,
    run_id: str,
    verify_profiles: bool = True
) -> Path:
    """
    Concatenate normalized clips into one continuous stream.

    Args:
        clips: Normalized clips (any order; index defines sequence)
        ledger: Run ledger for the manifest and output
        run_id: Run ID for logging
        verify_profiles: Probe each clip against its declared profile first

    Returns:
        Path to the sequenced stream

    Raises:
        ConcatFailedError: If preconditions fail or ffmpeg fails
    """
    profile = validate_clips(clips)
    if verify_profiles:
        await verify_clip_streams(clips, profile, run_id)

    manifest_path = ledger.allocate("manifest", "concat-list.txt")
    output_path = ledger.allocate("sequenced stream", "concat-output.mp4")

    await write_file(manifest_path, build_concat_manifest(clips).encode("utf-8"))

    ffmpeg_cmd = [
        settings.ffmpeg_binary,
        "-nostdin",
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(manifest_path),
        "-c", "copy",
        str(output_path)
    ]

    logger.info(
        f"Concatenating {len(clips)} clips",
        extra={"run_id": run_id, "clip_count": len(clips)}
    )

    await run_ffmpeg_command(
        ffmpeg_cmd,
        run_id=run_id,
        error_cls=ConcatFailedError,
        failure_message="FFmpeg concat failed"
    )

    if not output_path.exists():
        raise ConcatFailedError(f"Concatenated video not created: {output_path.name}")

    return output_path
