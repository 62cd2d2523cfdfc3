"""Collaborators shared by all route handlers, held on `app.state.services`."""

from dataclasses import dataclass

from fastapi import Request

from dungeon_dj.config import Settings
from dungeon_dj.game_store import GameStore
from dungeon_dj.llm import ChatLLM
from dungeon_dj.voice import ElevenLabsVoice


@dataclass
class Services:
    settings: Settings
    store: GameStore
    llm: ChatLLM
    character_llm: ChatLLM
    voice: ElevenLabsVoice


def get_services(request: Request) -> Services:
    return request.app.state.services
