"""Voice client: text-to-speech, voice design and speech-to-text.

The services depend on the Voice protocol only:

    async def synthesize(self, voice_id: str, text: str) -> bytes
    async def design_voice(self, description: str, sample_text: str) -> str

ElevenLabsVoice implements it over the ElevenLabs HTTP API and additionally
exposes transcribe() for the speech-to-text endpoint. Tests use StubVoice
(conftest.py) or drive ElevenLabsVoice through an httpx.MockTransport.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class Voice(Protocol):
    async def synthesize(self, voice_id: str, text: str) -> bytes: ...

    async def design_voice(self, description: str, sample_text: str) -> str: ...


class ElevenLabsVoice:
    """Async HTTP client for ElevenLabs.

      POST /v1/text-to-speech/{voice_id}/stream   → streamed audio bytes
      POST /v1/text-to-voice/design               → {"previews": [{"generated_voice_id"}]}
      POST /v1/text-to-voice                      → {"voice_id"}
      POST /v1/speech-to-text (multipart)         → {"text"}
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io",
        tts_model_id: str = "eleven_multilingual_v2",
        ttv_model_id: str = "eleven_multilingual_ttv_v2",
        stt_model_id: str = "scribe_v1",
        output_format: str = "mp3_44100_128",
        voice_name: str = "DnD Legend Narrator",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._tts_model_id = tts_model_id
        self._ttv_model_id = ttv_model_id
        self._stt_model_id = stt_model_id
        self._output_format = output_format
        self._voice_name = voice_name
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"xi-api-key": self._api_key},
            transport=self._transport,
        )

    async def synthesize(self, voice_id: str, text: str) -> bytes:
        """Stream speech for `text` and return the fully buffered audio."""
        logger.debug("tts voice=%s text_len=%d", voice_id, len(text))
        chunks: list[bytes] = []
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST",
                    f"/v1/text-to-speech/{voice_id}/stream",
                    params={"output_format": self._output_format},
                    json={"text": text, "model_id": self._tts_model_id},
                ) as resp:
                    if resp.status_code >= 400:
                        raise VoiceError(f"Text-to-speech returned HTTP {resp.status_code}")
                    async for chunk in resp.aiter_bytes():
                        chunks.append(chunk)
        except httpx.ConnectError as e:
            raise VoiceError(f"Cannot connect to voice backend at {self._base_url}") from e
        except httpx.TimeoutException as e:
            raise VoiceError(f"Voice backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise VoiceError(f"Voice backend request failed: {e}") from e
        audio = b"".join(chunks)
        logger.debug("tts done voice=%s bytes=%d", voice_id, len(audio))
        return audio

    async def design_voice(self, description: str, sample_text: str) -> str:
        """Design a voice from a description and save it; returns the voice id."""
        previews = await self._post_json("/v1/text-to-voice/design", {
            "model_id": self._ttv_model_id,
            "voice_description": description,
            "text": sample_text,
        })
        first = (previews.get("previews") or [None])[0]
        if not first or not first.get("generated_voice_id"):
            raise VoiceError("No voice preview generated")

        created = await self._post_json("/v1/text-to-voice", {
            "voice_name": self._voice_name,
            "voice_description": description,
            "generated_voice_id": first["generated_voice_id"],
        })
        voice_id = created.get("voice_id")
        if not voice_id:
            raise VoiceError("Unexpected response format from voice creation")
        logger.info("created narrator voice %s", voice_id)
        return voice_id

    async def transcribe(
        self, audio: bytes, mime_type: str = "audio/webm", model_id: str | None = None,
    ) -> str:
        """Transcribe recorded audio. Returns "" when nothing was recognised."""
        extension = mime_type.split("/")[-1] or "webm"
        resolved_model = model_id or self._stt_model_id
        logger.debug("stt model=%s mime=%s bytes=%d", resolved_model, mime_type, len(audio))
        data = await self._post(
            "/v1/speech-to-text",
            data={"model_id": resolved_model},
            files={"file": (f"recording.{extension}", audio, mime_type)},
        )
        return data.get("text") or data.get("transcription") or ""

    async def _post_json(self, path: str, body: dict) -> dict:
        return await self._post(path, json=body)

    async def _post(self, path: str, **kwargs) -> dict:
        try:
            async with self._client() as client:
                resp = await client.post(path, **kwargs)
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise VoiceError(f"Cannot connect to voice backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise VoiceError(f"Voice backend returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise VoiceError(f"Voice backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise VoiceError(f"Voice backend request failed: {e}") from e
        try:
            data = resp.json()
        except ValueError as e:
            raise VoiceError("Unexpected response format from voice backend") from e
        if not isinstance(data, dict):
            raise VoiceError("Unexpected response format from voice backend")
        return data


class VoiceError(RuntimeError):
    """Raised when the voice backend cannot be reached or returns an error."""
