"""Character sheet generation from a player's background notes."""

from __future__ import annotations

import logging

from dungeon_dj import prompts
from dungeon_dj.game_store import GameStore
from dungeon_dj.llm import ChatLLM, LLMError, json_schema_format, parse_structured
from dungeon_dj.models import CharacterSheet, ChatMessage, Game, Player

logger = logging.getLogger(__name__)


class CharacterGenerationError(RuntimeError):
    """Raised when the game or player disappeared before generation."""


async def generate_character_sheet(
    game: Game, player: Player, background: str, *, llm: ChatLLM,
) -> CharacterSheet:
    """One schema-constrained completion producing a CharacterSheet."""
    reply = await llm(
        "character",
        [
            ChatMessage(role="system", content=prompts.character_system_prompt()),
            ChatMessage(role="user", content=prompts.character_user_prompt(game, player, background)),
        ],
        response_format=json_schema_format("CharacterSheetResponse", CharacterSheet),
    )
    return parse_structured(reply, CharacterSheet, "character sheet")


async def create_character_for_player(
    store: GameStore, room_code: str, player_id: str, background: str, *, llm: ChatLLM,
) -> CharacterSheet:
    """Generate a sheet with status bookkeeping: generating, then ready or error.

    The LLMError is re-raised after the player is marked as errored.
    """
    game = await store.get_game(room_code)
    player = game.find_player(player_id) if game else None
    if game is None or player is None:
        raise CharacterGenerationError(f"Player {player_id} not found in game {room_code}")

    await store.update_player_background(room_code, player_id, background)
    await store.update_player_character_status(room_code, player_id, "generating")

    try:
        sheet = await generate_character_sheet(game, player, background, llm=llm)
    except LLMError as e:
        logger.warning("character generation failed for %s/%s: %s", room_code, player_id, e)
        await store.update_player_character_status(room_code, player_id, "error", str(e))
        raise

    await store.set_player_character_sheet(room_code, player_id, sheet)
    await store.save_player_character(room_code, player_id, sheet, background)
    return sheet
