"""Tests for dungeon_dj.storage: JsonFileRowStore."""

import json
from pathlib import Path

import pytest

from dungeon_dj.models import Game, WorldData
from dungeon_dj.storage import JsonFileRowStore, StorageError


def _game(code: str = "ABC234") -> Game:
    return Game(room_code=code, world_data=WorldData(genre="Pirates"))


class TestGames:
    async def test_insert_and_fetch(self, row_store: JsonFileRowStore) -> None:
        await row_store.insert_game(_game())
        fetched = await row_store.fetch_game("ABC234")
        assert fetched.world_data.genre == "Pirates"
        assert fetched.status == "generating"

    async def test_fetch_missing(self, row_store: JsonFileRowStore) -> None:
        assert await row_store.fetch_game("ZZZZZZ") is None

    async def test_update_merges_fields(self, row_store: JsonFileRowStore) -> None:
        await row_store.insert_game(_game())
        await row_store.update_game("ABC234", {"status": "ready", "story": "Yo ho."})
        fetched = await row_store.fetch_game("ABC234")
        assert fetched.status == "ready"
        assert fetched.story == "Yo ho."
        assert fetched.world_data.genre == "Pirates"

    async def test_update_missing_is_skipped(self, row_store: JsonFileRowStore, data_dir: Path) -> None:
        await row_store.update_game("ZZZZZZ", {"status": "ready"})
        assert not (data_dir / "games" / "ZZZZZZ.json").exists()

    async def test_invalid_update_rejected(self, row_store: JsonFileRowStore) -> None:
        await row_store.insert_game(_game())
        with pytest.raises(StorageError):
            await row_store.update_game("ABC234", {"status": "paused"})
        assert (await row_store.fetch_game("ABC234")).status == "generating"

    @pytest.mark.parametrize("code", ["../../X", "AB/C12", ""])
    async def test_unsafe_room_code_rejected(self, row_store: JsonFileRowStore, code: str) -> None:
        with pytest.raises(StorageError, match="Invalid room code"):
            await row_store.fetch_game(code)

    async def test_corrupt_row_raises(self, row_store: JsonFileRowStore, data_dir: Path) -> None:
        (data_dir / "games" / "BAD234.json").write_text(json.dumps({"room_code": "BAD234"}))
        with pytest.raises(StorageError, match="BAD234"):
            await row_store.fetch_game("BAD234")

    async def test_delete(self, row_store: JsonFileRowStore, data_dir: Path) -> None:
        await row_store.insert_game(_game())
        await row_store.insert_player_character("ABC234", {"name": "Aria"})
        assert await row_store.delete_game("ABC234") is True
        assert await row_store.fetch_game("ABC234") is None
        assert not (data_dir / "games" / "ABC234").exists()
        assert await row_store.delete_game("ABC234") is False


class TestPlayerCharacters:
    async def test_ids_increment(self, row_store: JsonFileRowStore) -> None:
        await row_store.insert_game(_game())
        first = await row_store.insert_player_character("ABC234", {"name": "Aria"})
        second = await row_store.insert_player_character("ABC234", {"name": "Borin"})
        assert (first["id"], second["id"]) == (1, 2)
        assert "created_at" in first

    async def test_list(self, row_store: JsonFileRowStore) -> None:
        await row_store.insert_game(_game())
        assert await row_store.list_player_characters("ABC234") == []
        await row_store.insert_player_character("ABC234", {"name": "Aria", "hp": 10})
        rows = await row_store.list_player_characters("ABC234")
        assert [(r["name"], r["hp"]) for r in rows] == [("Aria", 10)]
