"""
Media assembly data models.

Defines uploaded inputs, the normalization target profile, normalized clips,
and the assembly result.
"""

from pathlib import Path
from typing import Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class UploadedFile(BaseModel):
    """Raw file received from the client before it touches the filesystem."""

    filename: str
    content_type: Optional[str] = None
    data: bytes = Field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


class InputAsset(BaseModel):
    """Uploaded file written to a run-scoped temporary path."""

    kind: Literal["audio", "video"]
    index: Optional[int] = Field(default=None, ge=0, description="Ordinal for video clips")
    filename: str
    content_type: Optional[str] = None
    path: Path


class TargetProfile(BaseModel):
    """Encoding profile every clip is normalized to before concatenation."""

    model_config = ConfigDict(frozen=True)

    width: int = 640
    height: int = 360
    fps: int = 30
    video_codec: str = "libx264"
    ffprobe_codec_name: str = "h264"
    preset: str = "ultrafast"
    crf: int = 23
    pixel_format: str = "yuv420p"


class NormalizedClip(BaseModel):
    """Clip transcoded to the target profile, without audio."""

    index: int = Field(ge=0)
    path: Path
    profile: TargetProfile


class AssemblyResult(BaseModel):
    """Outcome of a successful assembly run."""

    run_id: str
    audio_duration: float = Field(description="Probed audio duration in seconds")
    output_duration: Optional[float] = Field(default=None, description="Probed output duration in seconds")
    sync_drift: Optional[float] = Field(default=None, description="|output - audio| in seconds")
    clips_used: int
    file_size_mb: float
    assembly_time: float = Field(description="Wall-clock time in seconds")
    timings: Dict[str, float] = Field(default_factory=dict)
    video_bytes: bytes = Field(repr=False)
