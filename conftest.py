"""Shared test fixtures: stub LLM/voice collaborators and a tmp-backed store."""

import json
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from dungeon_dj.game_store import GameStore
from dungeon_dj.grid import generate_room_grid
from dungeon_dj.llm import ChatReply, ToolCall
from dungeon_dj.models import ChatMessage, Game, Npc, Player, Room, RoomPlan, WorldData
from dungeon_dj.storage import JsonFileRowStore


@dataclass
class LLMCall:
    stage: str
    messages: list[ChatMessage]
    response_format: dict | None
    tools: list[dict] | None


class StubLLM:
    """Returns queued replies per stage and records every call."""

    def __init__(self) -> None:
        self.replies: dict[str, list[ChatReply]] = {}
        self.calls: list[LLMCall] = []

    def queue(self, stage: str, reply: ChatReply) -> None:
        self.replies.setdefault(stage, []).append(reply)

    def stages(self) -> list[str]:
        return [c.stage for c in self.calls]

    async def __call__(self, stage, messages, *, response_format=None, tools=None) -> ChatReply:
        self.calls.append(LLMCall(stage, list(messages), response_format, tools))
        queued = self.replies.get(stage)
        if not queued:
            raise AssertionError(f"unexpected LLM call for stage {stage!r}")
        return queued.pop(0)


@dataclass
class StubVoice:
    """Audio is the text prefixed with the voice id, so tests can assert on it."""

    voice_id: str = "voice-123"
    transcript: str = "I open the door"
    spoken: list[tuple[str, str]] = field(default_factory=list)
    designed: list[tuple[str, str]] = field(default_factory=list)

    async def synthesize(self, voice_id: str, text: str) -> bytes:
        self.spoken.append((voice_id, text))
        return f"{voice_id}:{text}".encode()

    async def design_voice(self, description: str, sample_text: str) -> str:
        self.designed.append((description, sample_text))
        return self.voice_id

    async def transcribe(self, audio: bytes, mime_type: str = "audio/webm", model_id=None) -> str:
        return self.transcript


def text_reply(text: str) -> ChatReply:
    return ChatReply(content=text)


def json_reply(payload: dict) -> ChatReply:
    return ChatReply(content=json.dumps(payload))


def tool_reply(name: str, **arguments) -> ChatReply:
    return ChatReply(tool_calls=[ToolCall(id="call_1", name=name, arguments=json.dumps(arguments))])


def make_room(npc_name: str = "Grimble", equipments: list[str] | None = None) -> Room:
    room = Room(
        npc=Npc(npc_name=npc_name, disposition="neutral", damage=1),
        room_description=f"A dusty hall guarded by {npc_name}.",
        equipments=list(equipments or []),
    )
    return room.model_copy(update={"grid_map": generate_room_grid(room)})


def headings_payload(count: int) -> dict:
    return {
        "headings": [
            {"heading": f"Part {i}", "story_part": f"Story part {i}."}
            for i in range(count)
        ]
    }


@pytest.fixture
def stub_llm() -> StubLLM:
    return StubLLM()


@pytest.fixture
def stub_voice() -> StubVoice:
    return StubVoice()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def row_store(data_dir: Path) -> JsonFileRowStore:
    return JsonFileRowStore(data_dir)


@pytest.fixture
def store(row_store: JsonFileRowStore) -> GameStore:
    return GameStore(row_store)


@pytest.fixture
def world() -> WorldData:
    return WorldData(
        genre="Dark fantasy",
        team_background="Disgraced knights seeking redemption",
        story_goal="Recover the stolen crown",
        story_idea="A crypt beneath the abbey",
        facilitator_persona="A wry old bard",
        actions_per_session="3",
    )


@pytest.fixture
async def ready_game(store: GameStore, world: WorldData) -> Game:
    """A ready game with three rooms, a narrator voice and two players."""
    game = await store.create_game(world)
    rooms = [
        make_room("Grimble", ["Rusty Key", "Torch"]),
        make_room("Sister Ysolde", ["Holy Water"]),
        make_room("The Crypt Lord", []),
    ]
    await store.set_scene(
        game.room_code, "### INTRODUCTION\nIt begins.\n---\nMore.", RoomPlan(rooms=rooms), "voice-123",
    )
    await store.add_player(game.room_code, Player(id="p1", character_name="Aria"))
    await store.add_player(game.room_code, Player(id="p2", character_name="Borin"))
    return await store.get_game(game.room_code)
