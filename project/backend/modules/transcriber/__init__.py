"""
Transcriber module.

Produces WebVTT captions for an audio track.
"""

from modules.transcriber.client import TranscriptionClient

__all__ = ["TranscriptionClient"]
