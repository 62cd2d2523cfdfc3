"""FastAPI API endpoints under /api.

Endpoint groups: health, games (create, get, delete, join, ready, leave,
start), characters (sheet generation), storytelling (narrate, respond) and
speech (speech-to-text, text-to-speech). Games are addressed by room code;
room codes are case-insensitive.
"""

from fastapi import APIRouter

from .characters import router as characters_router
from .games import router as games_router
from .health import router as health_router
from .speech import router as speech_router
from .storytelling import router as storytelling_router

router = APIRouter()
router.include_router(health_router)
router.include_router(games_router)
router.include_router(characters_router)
router.include_router(storytelling_router)
router.include_router(speech_router)
