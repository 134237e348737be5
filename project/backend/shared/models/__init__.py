"""
Data models for the music video service.

This module exports all Pydantic models used across modules.
"""

from .media import (
    UploadedFile,
    InputAsset,
    TargetProfile,
    NormalizedClip,
    AssemblyResult
)
from .collaborators import (
    StockVideoRendition,
    StockVideoHit,
    TranscriptStatus,
    PaymentVerification
)

__all__ = [
    # Media models
    "UploadedFile",
    "InputAsset",
    "TargetProfile",
    "NormalizedClip",
    "AssemblyResult",
    # Collaborator models
    "StockVideoRendition",
    "StockVideoHit",
    "TranscriptStatus",
    "PaymentVerification",
]
