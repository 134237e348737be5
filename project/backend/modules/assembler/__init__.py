"""
Assembler module.

Turns one audio track and N video clips into a single music video: normalizes
clips, concatenates them, loops the result over the audio and muxes.
"""

from modules.assembler.process import process

__all__ = ["process"]
