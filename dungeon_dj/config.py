"""Runtime settings read from the environment (and `.env` when present)."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT = Path(__file__).parent.parent


class Settings(BaseModel):
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com"
    openai_model: str = "gpt-4.1-mini"
    openai_character_model: str = "gpt-4.1"
    llm_timeout: float = 120.0

    elevenlabs_api_key: str = ""
    elevenlabs_base_url: str = "https://api.elevenlabs.io"
    elevenlabs_tts_model_id: str = "eleven_multilingual_v2"
    elevenlabs_ttv_model_id: str = "eleven_multilingual_ttv_v2"
    elevenlabs_stt_model_id: str = "scribe_v1"
    elevenlabs_output_format: str = "mp3_44100_128"
    narrator_voice_name: str = "DnD Legend Narrator"

    data_dir: Path = ROOT / "data"


def load_settings(env_file: Path | None = None) -> Settings:
    """Build Settings from environment variables, loading `.env` first.

    Unset variables keep the defaults declared on Settings.
    """
    load_dotenv(env_file or ROOT / ".env")
    fields: dict[str, str] = {}
    for name in Settings.model_fields:
        value = os.getenv(name.upper())
        if value:
            fields[name] = value
    return Settings.model_validate(fields)
