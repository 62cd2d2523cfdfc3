"""Character sheet generation endpoint."""

from fastapi import APIRouter, Depends, HTTPException

from backend.state import Services, get_services
from dungeon_dj.llm import LLMError
from dungeon_dj.services import create_character_for_player

from .models import GenerateCharacter

router = APIRouter()

MIN_BACKGROUND = 50
MAX_BACKGROUND = 1500


@router.post("/characters/generate")
async def generate_character(body: GenerateCharacter, services: Services = Depends(get_services)):
    """Generate a character sheet from the player's background notes."""
    background = body.background.strip()
    if len(background) < MIN_BACKGROUND:
        raise HTTPException(400, f"Background must be at least {MIN_BACKGROUND} characters")
    if len(background) > MAX_BACKGROUND:
        raise HTTPException(400, f"Background must be less than {MAX_BACKGROUND} characters")

    game = await services.store.get_game(body.room_code)
    if not game:
        raise HTTPException(404, "Game not found")
    if not game.find_player(body.player_id):
        raise HTTPException(404, "Player not found in this game")

    try:
        sheet = await create_character_for_player(
            services.store, body.room_code, body.player_id, background,
            llm=services.character_llm,
        )
    except LLMError as e:
        raise HTTPException(502, str(e))
    return {"character_sheet": sheet}
