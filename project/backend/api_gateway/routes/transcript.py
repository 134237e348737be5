"""
Transcript endpoint.

Returns WebVTT captions for an uploaded audio file.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from starlette.datastructures import UploadFile

from api_gateway.dependencies import error_response, get_transcription_client
from modules.transcriber.client import TranscriptionClient
from shared.errors import TranscriptionError
from shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/transcript")
async def transcript(
    request: Request,
    client: TranscriptionClient = Depends(get_transcription_client)
):
    """Transcribe the `audio` form field to text/vtt."""
    if not client.configured:
        return error_response(500, "Transcription service not configured")

    form = await request.form()
    try:
        audio_field = form.get("audio")
        if not isinstance(audio_field, UploadFile):
            return error_response(400, "No audio file provided")
        audio_bytes = await audio_field.read()
    finally:
        await form.close()

    try:
        vtt_text = await client.transcribe(audio_bytes)
    except TranscriptionError as e:
        logger.error(f"Transcription error: {e}", extra={"error_type": type(e).__name__})
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Transcription error: {e}", exc_info=True)
        return error_response(500, "Transcription failed")

    return Response(content=vtt_text, media_type="text/vtt")
