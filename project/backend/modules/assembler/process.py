"""
Main entry point for assembler module.

Orchestrates one assembly run: writes uploads to disk, probes the audio while
clips are normalized, concatenates, loops and muxes, and always releases the
run's temp files.
"""
import asyncio
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Optional
from uuid import uuid4

from shared.config import settings
from shared.errors import AssemblyError, DeadlineExceededError, InputMissingError
from shared.logging import get_logger, set_run_id
from shared.models.media import AssemblyResult, InputAsset, UploadedFile

from .config import DEFAULT_AUDIO_EXTENSION, TARGET_PROFILE
from .compositor import compose_output
from .ledger import ResourceLedger
from .normalizer import normalize_clips
from .probe import probe_duration
from .sequencer import concatenate_clips
from .utils import check_ffmpeg_available, gather_or_cancel, read_file, write_file

logger = get_logger("assembler.process")


class AssemblyRun:
    """One execution of the pipeline: identity, deadline and ledger."""

    def __init__(
        self,
        run_id: Optional[str] = None,
        deadline: Optional[float] = None,
        temp_dir: Optional[Path] = None
    ):
        self.run_id = run_id or uuid4().hex
        self.deadline = deadline if deadline is not None else settings.run_deadline_seconds
        self.temp_dir = Path(temp_dir or settings.temp_dir or tempfile.gettempdir())
        self.ledger = ResourceLedger(self.run_id, self.temp_dir)
        self.started_at = time.time()

    @property
    def elapsed(self) -> float:
        return time.time() - self.started_at


def audio_extension(filename: Optional[str]) -> str:
    """Extension of the uploaded audio file reduced to [a-z0-9], defaulting to aac."""
    if not filename or "." not in filename:
        return DEFAULT_AUDIO_EXTENSION
    ext = re.sub(r"[^a-z0-9]", "", filename.rsplit(".", 1)[-1].lower())
    return ext or DEFAULT_AUDIO_EXTENSION


async def write_inputs(
    run: AssemblyRun,
    audio: UploadedFile,
    videos: List[UploadedFile]
) -> tuple:
    """Write uploads to ledger-registered paths. Returns (clip_assets, audio_asset)."""
    clip_assets = []
    for index, upload in enumerate(videos):
        path = run.ledger.allocate(f"raw clip {index}", f"raw-clip-{index}.mp4")
        await write_file(path, upload.data)
        clip_assets.append(InputAsset(
            kind="video",
            index=index,
            filename=upload.filename,
            content_type=upload.content_type,
            path=path
        ))

    audio_path = run.ledger.allocate("audio", f"audio.{audio_extension(audio.filename)}")
    await write_file(audio_path, audio.data)
    audio_asset = InputAsset(
        kind="audio",
        filename=audio.filename,
        content_type=audio.content_type,
        path=audio_path
    )
    return clip_assets, audio_asset


async def run_pipeline(
    run: AssemblyRun,
    audio: UploadedFile,
    videos: List[UploadedFile]
) -> AssemblyResult:
    """Pipeline body; cleanup and deadline are handled by process()."""
    timings: Dict[str, float] = {}

    step_start = time.time()
    clip_assets, audio_asset = await write_inputs(run, audio, videos)
    timings["write_inputs"] = time.time() - step_start

    # Probe has no dependency on the clips, so it runs alongside normalization
    step_start = time.time()
    normalized_clips, audio_duration = await gather_or_cancel(
        normalize_clips(
            clip_assets,
            run.ledger,
            run.run_id,
            TARGET_PROFILE,
            concurrency=settings.normalize_concurrency
        ),
        probe_duration(audio_asset.path, run.run_id)
    )
    timings["normalize_and_probe"] = time.time() - step_start

    logger.info(
        f"Normalized {len(normalized_clips)} clips, audio is {audio_duration:.3f}s "
        f"({timings['normalize_and_probe']:.2f}s)",
        extra={"run_id": run.run_id, "clips_count": len(normalized_clips), "audio_duration": audio_duration}
    )

    step_start = time.time()
    sequenced_path = await concatenate_clips(
        normalized_clips,
        run.ledger,
        run.run_id,
        verify_profiles=settings.verify_clip_profiles
    )
    timings["concatenate"] = time.time() - step_start

    step_start = time.time()
    output_path, output_duration = await compose_output(
        sequenced_path,
        audio_asset.path,
        audio_duration,
        run.ledger,
        run.run_id
    )
    timings["compose"] = time.time() - step_start

    video_bytes = await read_file(output_path)
    timings["total"] = run.elapsed

    return AssemblyResult(
        run_id=run.run_id,
        audio_duration=audio_duration,
        output_duration=output_duration,
        sync_drift=abs(output_duration - audio_duration) if output_duration is not None else None,
        clips_used=len(normalized_clips),
        file_size_mb=len(video_bytes) / 1024 / 1024,
        assembly_time=run.elapsed,
        timings=timings,
        video_bytes=video_bytes
    )


async def process(
    audio: Optional[UploadedFile],
    videos: List[UploadedFile],
    run_id: Optional[str] = None,
    deadline: Optional[float] = None,
    temp_dir: Optional[Path] = None
) -> AssemblyResult:
    """
    Assemble a music video from one audio track and ordered clips.

    Args:
        audio: Audio upload
        videos: Video uploads in concatenation order
        run_id: Optional run identifier (generated when omitted)
        deadline: Wall-clock budget in seconds (defaults to settings)
        temp_dir: Directory for run artifacts (defaults to settings/system temp)

    Returns:
        AssemblyResult holding the output bytes; no temp file survives the call

    Raises:
        InputMissingError: No audio or no clips (nothing is spawned or written)
        AssemblyError: Any stage failure, including DeadlineExceededError
    """
    if audio is None or not audio.data or not any(video.data for video in videos):
        raise InputMissingError("Missing audio or video files")

    if not check_ffmpeg_available():
        raise AssemblyError(
            "FFmpeg not found. Please install FFmpeg:\n"
            "  macOS: brew install ffmpeg\n"
            "  Linux: apt-get install ffmpeg or yum install ffmpeg\n"
            "  Windows: Download from https://ffmpeg.org/"
        )

    run = AssemblyRun(run_id=run_id, deadline=deadline, temp_dir=temp_dir)
    set_run_id(run.run_id)
    logger.info(
        f"Starting assembly of {len(videos)} clips",
        extra={"run_id": run.run_id, "clips_count": len(videos), "deadline": run.deadline}
    )

    try:
        result = await asyncio.wait_for(run_pipeline(run, audio, videos), timeout=run.deadline)
        logger.info(
            f"Assembly complete: {result.file_size_mb:.2f} MB, {result.assembly_time:.2f}s",
            extra={
                "run_id": run.run_id,
                "file_size_mb": result.file_size_mb,
                "assembly_time": result.assembly_time,
                "clips_used": result.clips_used,
                "audio_duration": result.audio_duration,
                "output_duration": result.output_duration,
                "timings": result.timings
            }
        )
        return result
    except asyncio.TimeoutError:
        logger.error(
            f"Assembly exceeded {run.deadline:.0f}s deadline",
            extra={"run_id": run.run_id, "elapsed": run.elapsed}
        )
        raise DeadlineExceededError(f"Assembly exceeded {run.deadline:.0f}s deadline")
    except AssemblyError as e:
        logger.error(
            f"Assembly failed at {e.stage} stage",
            exc_info=True,
            extra={"run_id": run.run_id, "stage": e.stage}
        )
        raise
    except asyncio.CancelledError:
        logger.warning("Assembly cancelled", extra={"run_id": run.run_id})
        raise
    except Exception as e:
        logger.error(
            f"Unexpected assembly error: {e}",
            exc_info=True,
            extra={"run_id": run.run_id}
        )
        raise AssemblyError("Unexpected error during assembly", str(e)) from e
    finally:
        run.ledger.release_all()
        set_run_id(None)
