"""
Mux endpoint.

Accepts one audio file and ordered video clips and returns the assembled
music video.
"""

from typing import List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from starlette.datastructures import UploadFile

from api_gateway.dependencies import error_response
from modules.assembler.config import OUTPUT_CONTENT_TYPE, OUTPUT_FILENAME
from modules.assembler.process import process as assemble_music_video
from shared.errors import AssemblyError
from shared.logging import get_logger
from shared.models.media import UploadedFile

logger = get_logger(__name__)

router = APIRouter()


async def to_uploaded_file(upload: UploadFile) -> UploadedFile:
    return UploadedFile(
        filename=upload.filename or "",
        content_type=upload.content_type,
        data=await upload.read()
    )


def collect_video_fields(form) -> List[UploadFile]:
    """video0, video1, ... up to the first missing index."""
    videos = []
    index = 0
    while True:
        field = form.get(f"video{index}")
        if not isinstance(field, UploadFile):
            break
        videos.append(field)
        index += 1
    return videos


@router.post("/mux")
async def mux(request: Request):
    """
    Assemble a music video.

    Form fields:
        audio: Audio track
        video0..videoN: Clips in playback order

    Returns:
        video/mp4 body named musicvideo.mp4, or {"error": ...} with 400/500
    """
    form = await request.form()
    try:
        audio_field = form.get("audio")
        audio: Optional[UploadedFile] = None
        if isinstance(audio_field, UploadFile):
            audio = await to_uploaded_file(audio_field)
        videos = [await to_uploaded_file(field) for field in collect_video_fields(form)]

        logger.info(
            f"Mux request with {len(videos)} clips",
            extra={
                "clips_count": len(videos),
                "has_audio": audio is not None,
                "upload_bytes": sum(upload.size for upload in videos) + (audio.size if audio else 0)
            }
        )

        try:
            result = await assemble_music_video(audio, videos)
        except AssemblyError as e:
            if e.status_code == 400:
                return error_response(400, e.message)
            return error_response(e.status_code, f"Muxing failed: {e}")
    finally:
        await form.close()

    return Response(
        content=result.video_bytes,
        media_type=OUTPUT_CONTENT_TYPE,
        headers={"Content-Disposition": f'inline; filename="{OUTPUT_FILENAME}"'}
    )
