import logging
from pathlib import Path

from fastapi import FastAPI

from backend.routes import router
from backend.state import Services
from dungeon_dj.config import Settings, load_settings
from dungeon_dj.game_store import GameStore
from dungeon_dj.llm import ChatLLM, HttpChatLLM
from dungeon_dj.storage import JsonFileRowStore
from dungeon_dj.voice import ElevenLabsVoice

logger = logging.getLogger(__name__)


def create_app(
    data_dir: Path | None = None,
    settings: Settings | None = None,
    llm: ChatLLM | None = None,
    character_llm: ChatLLM | None = None,
    voice: ElevenLabsVoice | None = None,
) -> FastAPI:
    """Build the app. Collaborators default to the real HTTP clients from settings."""
    settings = settings or load_settings()
    resolved = data_dir or settings.data_dir

    if llm is None:
        http_llm = HttpChatLLM(
            provider_url=settings.openai_base_url,
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.llm_timeout,
        )
        llm = http_llm
        character_llm = character_llm or http_llm.with_model(settings.openai_character_model)
    if voice is None:
        voice = ElevenLabsVoice(
            api_key=settings.elevenlabs_api_key,
            base_url=settings.elevenlabs_base_url,
            tts_model_id=settings.elevenlabs_tts_model_id,
            ttv_model_id=settings.elevenlabs_ttv_model_id,
            stt_model_id=settings.elevenlabs_stt_model_id,
            output_format=settings.elevenlabs_output_format,
            voice_name=settings.narrator_voice_name,
        )

    app = FastAPI(title="Dungeon DJ")
    app.state.services = Services(
        settings=settings,
        store=GameStore(JsonFileRowStore(resolved)),
        llm=llm,
        character_llm=character_llm or llm,
        voice=voice,
    )
    app.include_router(router, prefix="/api")
    logger.info("Dungeon DJ data dir: %s", resolved)
    return app


def default_app() -> FastAPI:
    """Factory for uvicorn (`backend.app:default_app --factory`)."""
    return create_app()
