"""Persistent row store.

The session store mirrors games into a row store through the RowStore
protocol. JsonFileRowStore keeps rows in flat JSON files under a configurable
base directory; reads and writes go through plain helper methods that load and
dump JSON, and every row is validated with pydantic when read back.

Directory layout:

    {base}/
      games/
        {room_code}.json        ← one game row (world data, story, rooms, state, players)
        {room_code}/
          players.json          ← generated character rows
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from dungeon_dj.models import Game

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a stored row cannot be read back or a key is unusable."""


def _checked(room_code: str) -> str:
    # room codes become file names
    if not room_code.isascii() or not room_code.isalnum():
        raise StorageError(f"Invalid room code {room_code!r}")
    return room_code


class RowStore(Protocol):
    async def insert_game(self, game: Game) -> None: ...

    async def fetch_game(self, room_code: str) -> Game | None: ...

    async def update_game(self, room_code: str, fields: dict[str, Any]) -> None: ...

    async def delete_game(self, room_code: str) -> bool: ...

    async def insert_player_character(self, room_code: str, row: dict[str, Any]) -> dict[str, Any]: ...

    async def list_player_characters(self, room_code: str) -> list[dict[str, Any]]: ...


class JsonFileRowStore:
    def __init__(self, base_path: Path) -> None:
        self._games_root = base_path / "games"
        self._games_root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _game_file(self, room_code: str) -> Path:
        return self._games_root / f"{_checked(room_code)}.json"

    def _game_dir(self, room_code: str) -> Path:
        return self._games_root / _checked(room_code)

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text())

    def _write_json(self, path: Path, data: Any) -> None:
        path.write_text(json.dumps(data, indent=2))

    def _read_game(self, room_code: str) -> Game | None:
        path = self._game_file(room_code)
        if not path.exists():
            return None
        try:
            return Game.model_validate_json(path.read_text())
        except ValidationError as e:
            raise StorageError(f"Stored game {room_code} is invalid") from e

    # ------------------------------------------------------------------
    # Games
    # ------------------------------------------------------------------

    async def insert_game(self, game: Game) -> None:
        self._game_file(game.room_code).write_text(game.model_dump_json(indent=2))
        self._game_dir(game.room_code).mkdir(exist_ok=True)

    async def fetch_game(self, room_code: str) -> Game | None:
        return self._read_game(room_code)

    async def update_game(self, room_code: str, fields: dict[str, Any]) -> None:
        """Overwrite top-level game fields. Missing rows are logged and skipped."""
        path = self._game_file(room_code)
        if not path.exists():
            logger.warning("update for unknown game %s ignored", room_code)
            return
        row = self._read_json(path)
        row.update(fields)
        try:
            game = Game.model_validate(row)
        except ValidationError as e:
            raise StorageError(f"Update would make game {room_code} invalid") from e
        path.write_text(game.model_dump_json(indent=2))

    async def delete_game(self, room_code: str) -> bool:
        path = self._game_file(room_code)
        if not path.exists():
            return False
        path.unlink()
        child_dir = self._game_dir(room_code)
        if child_dir.is_dir():
            for child in child_dir.iterdir():
                child.unlink()
            child_dir.rmdir()
        return True

    # ------------------------------------------------------------------
    # Player characters
    # ------------------------------------------------------------------

    async def insert_player_character(self, room_code: str, row: dict[str, Any]) -> dict[str, Any]:
        """Append a character row and return it with its assigned id."""
        rows = await self.list_player_characters(room_code)
        stored = {
            **row,
            "id": max((r["id"] for r in rows), default=0) + 1,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        rows.append(stored)
        self._game_dir(room_code).mkdir(exist_ok=True)
        self._write_json(self._game_dir(room_code) / "players.json", rows)
        return stored

    async def list_player_characters(self, room_code: str) -> list[dict[str, Any]]:
        path = self._game_dir(room_code) / "players.json"
        if not path.exists():
            return []
        return self._read_json(path)
