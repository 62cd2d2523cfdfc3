"""Speech-to-text and text-to-speech endpoints."""

import base64
import binascii
import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.state import Services, get_services
from dungeon_dj.voice import VoiceError

from .models import SpeechToTextBody, TtsBody

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/speech-to-text")
async def speech_to_text(body: SpeechToTextBody, services: Services = Depends(get_services)):
    """Transcribe a base64 recording."""
    if not services.settings.elevenlabs_api_key:
        raise HTTPException(500, "Speech-to-text API key is not configured")
    try:
        audio = base64.b64decode(body.audio, validate=True)
    except binascii.Error:
        raise HTTPException(400, "Audio payload is not valid base64")
    if not audio:
        raise HTTPException(400, "Audio payload is required")

    try:
        transcript = await services.voice.transcribe(audio, body.mime_type, body.model_id)
    except VoiceError as e:
        logger.error("speech-to-text failed: %s", e)
        raise HTTPException(502, "Failed to transcribe audio")
    return {"transcript": transcript}


@router.post("/tts")
async def text_to_speech(body: TtsBody, services: Services = Depends(get_services)):
    """Synthesize `text` with a voice; returns base64 audio."""
    try:
        audio = await services.voice.synthesize(body.voice_id, body.text)
    except VoiceError as e:
        raise HTTPException(502, str(e))
    return {"audio": base64.b64encode(audio).decode("ascii"), "text": body.text}
