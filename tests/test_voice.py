"""Tests for dungeon_dj.voice: ElevenLabsVoice over a mock transport."""

import json

import httpx
import pytest

from dungeon_dj.voice import ElevenLabsVoice, VoiceError


def _voice(handler) -> ElevenLabsVoice:
    return ElevenLabsVoice(api_key="xi-key", transport=httpx.MockTransport(handler))


class TestSynthesize:
    async def test_returns_buffered_audio(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"ID3-audio-bytes")

        audio = await _voice(handler).synthesize("v1", "Welcome, travellers.")
        assert audio == b"ID3-audio-bytes"
        request = seen[0]
        assert request.url.path == "/v1/text-to-speech/v1/stream"
        assert request.url.params["output_format"] == "mp3_44100_128"
        assert request.headers["xi-api-key"] == "xi-key"
        assert json.loads(request.content) == {
            "text": "Welcome, travellers.", "model_id": "eleven_multilingual_v2",
        }

    async def test_error_status_raises(self) -> None:
        voice = _voice(lambda request: httpx.Response(401, json={"detail": "bad key"}))
        with pytest.raises(VoiceError, match="HTTP 401"):
            await voice.synthesize("v1", "Hello.")

    async def test_connect_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(VoiceError, match="Cannot connect"):
            await _voice(handler).synthesize("v1", "Hello.")


    async def test_read_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadError("connection reset", request=request)

        with pytest.raises(VoiceError, match="request failed"):
            await _voice(handler).synthesize("v1", "Hello.")


class TestDesignVoice:
    async def test_design_then_create(self) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            body = json.loads(request.content)
            if request.url.path == "/v1/text-to-voice/design":
                assert body["voice_description"] == "A gravelly baritone"
                return httpx.Response(200, json={"previews": [{"generated_voice_id": "gen-1"}]})
            assert body == {
                "voice_name": "DnD Legend Narrator",
                "voice_description": "A gravelly baritone",
                "generated_voice_id": "gen-1",
            }
            return httpx.Response(200, json={"voice_id": "voice-42"})

        voice_id = await _voice(handler).design_voice("A gravelly baritone", "Sample text.")
        assert voice_id == "voice-42"
        assert paths == ["/v1/text-to-voice/design", "/v1/text-to-voice"]

    async def test_no_preview_raises(self) -> None:
        voice = _voice(lambda request: httpx.Response(200, json={"previews": []}))
        with pytest.raises(VoiceError, match="No voice preview generated"):
            await voice.design_voice("desc", "sample")

    async def test_http_error_raises(self) -> None:
        voice = _voice(lambda request: httpx.Response(422, json={}))
        with pytest.raises(VoiceError, match="HTTP 422"):
            await voice.design_voice("desc", "sample")


class TestTranscribe:
    async def test_multipart_upload(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"text": "I open the door"})

        text = await _voice(handler).transcribe(b"webm-bytes", "audio/webm")
        assert text == "I open the door"
        request = seen[0]
        assert request.url.path == "/v1/speech-to-text"
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b"scribe_v1" in request.content
        assert b'filename="recording.webm"' in request.content

    async def test_falls_back_to_transcription_field(self) -> None:
        voice = _voice(lambda request: httpx.Response(200, json={"transcription": "hello"}))
        assert await voice.transcribe(b"x") == "hello"

    async def test_empty_result(self) -> None:
        voice = _voice(lambda request: httpx.Response(200, json={}))
        assert await voice.transcribe(b"x") == ""
