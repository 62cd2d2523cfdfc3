"""Session store: active games keyed by room code.

The in-memory map is authoritative while the process runs. Every mutation is
mirrored to the injected RowStore; a cache miss is re-populated from it.

Facilitator turns for one room code are serialised with `lock(room_code)`.
Other mutations are single in-memory steps followed by a row write.

Missing games or players return None (routes map that to 404).
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import uuid
from typing import Any

from dungeon_dj.models import (
    CharacterGenerationStatus,
    CharacterSheet,
    Game,
    GameState,
    GameStatus,
    Player,
    RoomPlan,
    WorldData,
)
from dungeon_dj.storage import RowStore

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6


class DuplicatePlayerError(ValueError):
    """Raised when a character name is already taken in a game."""


def new_player_id() -> str:
    return uuid.uuid4().hex[:12]


class GameStore:
    def __init__(self, row_store: RowStore) -> None:
        self._rows = row_store
        self._games: dict[str, Game] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Room codes + locking
    # ------------------------------------------------------------------

    def generate_room_code(self) -> str:
        """Six characters without 0/O/1/I, re-rolled until unused."""
        while True:
            code = "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self._games:
                return code

    def lock(self, room_code: str) -> asyncio.Lock:
        return self._locks.setdefault(room_code.upper(), asyncio.Lock())

    # ------------------------------------------------------------------
    # Games
    # ------------------------------------------------------------------

    async def create_game(self, world_data: WorldData) -> Game:
        game = Game(room_code=self.generate_room_code(), world_data=world_data)
        self._games[game.room_code] = game
        await self._rows.insert_game(game)
        logger.info("created game %s (%s)", game.room_code, world_data.genre)
        return game

    async def get_game(self, room_code: str) -> Game | None:
        code = room_code.upper()
        game = self._games.get(code)
        if game is None:
            game = await self._rows.fetch_game(code)
            if game is not None:
                self._games[code] = game
        return game

    async def delete_game(self, room_code: str) -> bool:
        code = room_code.upper()
        in_memory = self._games.pop(code, None) is not None
        self._locks.pop(code, None)
        stored = await self._rows.delete_game(code)
        return in_memory or stored

    async def update_game_status(self, room_code: str, status: GameStatus) -> Game | None:
        game = await self.get_game(room_code)
        if game is None:
            return None
        game.status = status
        await self._rows.update_game(game.room_code, {"status": status})
        logger.info("game %s status -> %s", game.room_code, status)
        return game

    async def set_scene(
        self, room_code: str, story: str, room_plan: RoomPlan, narrator_voice_id: str,
    ) -> Game | None:
        """Attach generated story, rooms and narrator voice; the game becomes ready."""
        game = await self.get_game(room_code)
        if game is None:
            return None
        game.story = story
        game.room_data = room_plan
        game.narrator_voice_id = narrator_voice_id
        game.status = "ready"
        await self._rows.update_game(game.room_code, {
            "story": story,
            "room_data": room_plan.model_dump(mode="json"),
            "narrator_voice_id": narrator_voice_id,
            "status": "ready",
        })
        return game

    async def save_game_state(self, room_code: str, state: GameState) -> None:
        game = await self.get_game(room_code)
        if game is None:
            return
        game.game_state = state
        await self._rows.update_game(game.room_code, {"game_state": state.model_dump(mode="json")})

    async def save_room_plan(self, room_code: str, room_plan: RoomPlan) -> None:
        game = await self.get_game(room_code)
        if game is None:
            return
        game.room_data = room_plan
        await self._rows.update_game(game.room_code, {"room_data": room_plan.model_dump(mode="json")})

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    async def add_player(self, room_code: str, player: Player) -> Game | None:
        game = await self.get_game(room_code)
        if game is None:
            return None
        name = player.character_name.strip()
        taken = {p.character_name.lower() for p in game.players}
        if name.lower() in taken:
            raise DuplicatePlayerError(f"Character name {name!r} already taken")
        normalized = player.model_copy(update={"character_name": name})
        game.players.append(normalized)
        await self._save_players(game)
        return game

    async def remove_player(self, room_code: str, player_id: str) -> Game | None:
        game = await self.get_game(room_code)
        if game is None:
            return None
        game.players = [p for p in game.players if p.id != player_id]
        await self._save_players(game)
        return game

    async def update_player_ready(self, room_code: str, player_id: str, is_ready: bool) -> Game | None:
        def apply(player: Player) -> None:
            player.is_ready = is_ready
        return await self._update_player(room_code, player_id, apply)

    async def update_player_background(self, room_code: str, player_id: str, background: str) -> Game | None:
        def apply(player: Player) -> None:
            player.character_background = background
        return await self._update_player(room_code, player_id, apply)

    async def update_player_character_status(
        self,
        room_code: str,
        player_id: str,
        status: CharacterGenerationStatus,
        error: str | None = None,
    ) -> Game | None:
        def apply(player: Player) -> None:
            player.character_generation_status = status
            player.character_generation_error = error if status == "error" else None
        return await self._update_player(room_code, player_id, apply)

    async def set_player_character_sheet(
        self, room_code: str, player_id: str, sheet: CharacterSheet,
    ) -> Game | None:
        def apply(player: Player) -> None:
            scores = sheet.ability_scores
            player.character_sheet = sheet
            player.hp = sheet.hit_points
            player.strength = scores.strength
            player.dexterity = scores.dexterity
            player.constitution = scores.constitution
            player.intelligence = scores.intelligence
            player.wisdom = scores.wisdom
            player.charisma = scores.charisma
            player.skills = list(sheet.skills)
            player.race = sheet.ancestry
            player.character_class = sheet.character_class
            player.character_generation_status = "ready"
            player.character_generation_error = None
        return await self._update_player(room_code, player_id, apply)

    async def save_player_character(
        self, room_code: str, player_id: str, sheet: CharacterSheet, background: str,
    ) -> dict[str, Any] | None:
        """Store the generated character in the players table."""
        game = await self.get_game(room_code)
        if game is None:
            logger.error("Unable to persist player %s: no game %s", player_id, room_code)
            return None
        player = game.find_player(player_id)
        if player is None:
            logger.error("Unable to persist player %s: not in game %s", player_id, room_code)
            return None
        row = await self._rows.insert_player_character(game.room_code, {
            "player_id": player_id,
            "name": sheet.name or player.character_name or "Unknown Adventurer",
            "backstory": background,
            "hp": sheet.hit_points,
            "attributes": sheet.ability_scores.model_dump(),
            "skills": list(sheet.skills),
            "equipment": list(sheet.equipment),
        })
        logger.info("stored character %s for player %s in %s", row["name"], player_id, room_code)
        return row

    async def _update_player(self, room_code: str, player_id: str, apply) -> Game | None:
        game = await self.get_game(room_code)
        if game is None:
            return None
        player = game.find_player(player_id)
        if player is None:
            return None
        apply(player)
        await self._save_players(game)
        return game

    async def _save_players(self, game: Game) -> None:
        await self._rows.update_game(
            game.room_code, {"players": [p.model_dump(mode="json") for p in game.players]}
        )
