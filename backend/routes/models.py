"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel, Field

from dungeon_dj.models import Room, WorldData

# Codes are matched case-insensitively, so lower case is accepted
ROOM_CODE_PATTERN = r"^[A-Za-z0-9]{6}$"


class CreateGame(BaseModel):
    world_data: WorldData


class JoinGame(BaseModel):
    room_code: str = Field(pattern=ROOM_CODE_PATTERN)
    character_name: str = Field(min_length=1, max_length=40)


class ReadyBody(BaseModel):
    room_code: str = Field(pattern=ROOM_CODE_PATTERN)
    player_id: str
    is_ready: bool


class LeaveBody(BaseModel):
    room_code: str = Field(pattern=ROOM_CODE_PATTERN)
    player_id: str


class GenerateCharacter(BaseModel):
    room_code: str = Field(pattern=ROOM_CODE_PATTERN)
    player_id: str
    background: str


class NarrateBody(BaseModel):
    room_code: str = Field(pattern=ROOM_CODE_PATTERN)


class RespondBody(BaseModel):
    room_code: str = Field(pattern=ROOM_CODE_PATTERN)
    transcript: str = Field(min_length=1)


class SpeechToTextBody(BaseModel):
    audio: str  # base64
    mime_type: str = "audio/webm"
    model_id: str | None = None


class TtsBody(BaseModel):
    text: str = Field(min_length=1)
    voice_id: str


class NarrationOut(BaseModel):
    audio: str  # base64 mp3
    text: str
    current_room: Room | None = None
    current_section_id: int | None = None
