"""
Assembler configuration.

FFmpeg settings, delivery encoding parameters and temp file naming.
"""
from shared.models.media import TargetProfile

# Every clip is transcoded to this before concatenation
TARGET_PROFILE = TargetProfile()

# Delivery encoding for the final mux
OUTPUT_VIDEO_CODEC = "libx264"
OUTPUT_AUDIO_CODEC = "aac"
OUTPUT_PRESET = "veryfast"
OUTPUT_AUDIO_BITRATE = "192k"
OUTPUT_PIXEL_FORMAT = "yuv420p"
OUTPUT_FILENAME = "musicvideo.mp4"
OUTPUT_CONTENT_TYPE = "video/mp4"

# Maximum |output - audio| before the drift is logged as a warning
DURATION_TOLERANCE = 0.2

# Lines of ffmpeg stderr kept for error messages
STDERR_TAIL_LINES = 5

# Temp file naming: mux-<run_id>-<role>.<ext>
TEMP_FILE_PREFIX = "mux"
DEFAULT_AUDIO_EXTENSION = "aac"
