"""
Clip normalization for assembler module.

Transcodes every clip to the fixed target profile so the sequencer can
concatenate them by stream copy.
"""
import asyncio
from typing import List

from shared.config import settings
from shared.errors import AssemblyError, TranscodeFailedError
from shared.logging import get_logger
from shared.models.media import InputAsset, NormalizedClip, TargetProfile
from .ledger import ResourceLedger
from .utils import gather_or_cancel, run_ffmpeg_command

logger = get_logger("assembler.normalizer")


def build_filter_chain(profile: TargetProfile) -> str:
    """Letterbox to the target size with square pixels, then resample to the target rate."""
    return (
        f"scale={profile.width}:{profile.height}:force_original_aspect_ratio=decrease,"
        f"pad={profile.width}:{profile.height}:(ow-iw)/2:(oh-ih)/2:color=black,"
        f"setsar=1,"
        f"fps={profile.fps}"
    )


async def normalize_clip(
    asset: InputAsset,
    ledger: ResourceLedger,
    run_id: str,
    profile: TargetProfile
) -> NormalizedClip:
    """
    Normalize one raw clip to the target profile, dropping audio.

    Args:
        asset: Raw video asset already written to disk
        ledger: Run ledger; the output path is registered before ffmpeg starts
        run_id: Run ID for naming and logging
        profile: Target encoding profile

    Returns:
        NormalizedClip with the same index as the input

    Raises:
        TranscodeFailedError: If ffmpeg fails or produces no output
    """
    if asset.kind != "video" or asset.index is None:
        raise TranscodeFailedError(f"Not a video clip: {asset.filename}")

    output_path = ledger.allocate(
        f"normalized clip {asset.index}", f"normalized-clip-{asset.index}.mp4"
    )

    ffmpeg_cmd = [
        settings.ffmpeg_binary,
        "-nostdin",
        "-y",
        "-i", str(asset.path),
        "-vf", build_filter_chain(profile),
        "-c:v", profile.video_codec,
        "-preset", profile.preset,
        "-crf", str(profile.crf),
        "-pix_fmt", profile.pixel_format,
        "-an",
        str(output_path)
    ]

    logger.info(
        f"Normalizing clip {asset.index} → {profile.width}x{profile.height} @ {profile.fps}fps",
        extra={"run_id": run_id, "clip_index": asset.index}
    )

    try:
        await run_ffmpeg_command(
            ffmpeg_cmd,
            run_id=run_id,
            error_cls=TranscodeFailedError,
            failure_message=f"FFmpeg transcode failed for clip {asset.index}"
        )
    except TranscodeFailedError as e:
        e.clip_index = asset.index
        raise

    if not output_path.exists():
        raise TranscodeFailedError(
            f"Normalized clip not created: {output_path.name}", clip_index=asset.index
        )

    logger.info(
        f"Normalized clip {asset.index}",
        extra={"run_id": run_id, "clip_index": asset.index}
    )
    return NormalizedClip(index=asset.index, path=output_path, profile=profile)


async def normalize_clips(
    assets: List[InputAsset],
    ledger: ResourceLedger,
    run_id: str,
    profile: TargetProfile,
    concurrency: int = 1
) -> List[NormalizedClip]:
    """
    Normalize all clips with at most `concurrency` ffmpeg processes at once.

    The first failure cancels the remaining clips. The result is ordered by
    clip index, not by completion order.
    """
    if concurrency < 1:
        raise AssemblyError(f"Normalization concurrency must be at least 1, got {concurrency}")

    semaphore = asyncio.Semaphore(concurrency)

    async def normalize_bounded(asset: InputAsset) -> NormalizedClip:
        async with semaphore:
            return await normalize_clip(asset, ledger, run_id, profile)

    clips = await gather_or_cancel(*(normalize_bounded(asset) for asset in assets))

    if len(clips) != len(assets):
        raise TranscodeFailedError(
            f"Clip count mismatch after normalization: expected {len(assets)}, got {len(clips)}"
        )
    return sorted(clips, key=lambda c: c.index)
