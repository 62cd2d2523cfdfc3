"""Core domain models.

Every service and storage function operates on these types. Pydantic is used
for validation and serialisation at every data boundary: rows read back from
storage, request bodies, and structured LLM replies (the models below also
produce the JSON schemas sent as ``response_format``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

GameStatus = Literal["generating", "ready", "in-progress", "completed", "error"]

CharacterGenerationStatus = Literal["idle", "generating", "ready", "error"]

SectionStatus = Literal["pending", "being_narrated", "has_completed"]

CellType = Literal["empty", "npc", "equipment", "player"]

ChatRole = Literal["system", "user", "assistant"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# World + players
# ---------------------------------------------------------------------------

class WorldData(BaseModel):
    """What the host submitted when creating the game. Never mutated."""

    genre: str
    team_background: str = ""
    story_goal: str = ""
    story_idea: str = ""
    facilitator_persona: str = ""
    facilitator_voice: str = ""
    actions_per_session: str = ""


class AbilityScores(BaseModel):
    strength: int = Field(ge=3, le=18)
    dexterity: int = Field(ge=3, le=18)
    constitution: int = Field(ge=3, le=18)
    intelligence: int = Field(ge=3, le=18)
    wisdom: int = Field(ge=3, le=18)
    charisma: int = Field(ge=3, le=18)


class CharacterSheet(BaseModel):
    """A generated, game-ready character. Regenerated rather than edited."""

    name: str = Field(description="In-world character name ready to use at the table")
    ancestry: str = Field(description="Ancestry/species such as Human, Elf, Tiefling")
    character_class: str = Field(description="Adventuring class archetype such as Fighter or Wizard")
    level: int = Field(ge=1, le=5, description="Character level (1-5)")
    hit_points: int = Field(ge=4, le=30, description="Recommended starting hit points")
    alignment: str = Field(description="Short description of alignment or ethos")
    background_summary: str = Field(description="3-4 sentence summary of who they are and motivations")
    ability_scores: AbilityScores
    combat_style: str = Field(description="Sentence describing how they approach combat encounters")
    skills: list[str] = Field(min_length=3, max_length=8)
    equipment: list[str] = Field(min_length=3, max_length=10)
    personality_traits: list[str] = Field(min_length=2, max_length=5)
    special_abilities: list[str] = Field(min_length=2, max_length=6)


class Player(BaseModel):
    id: str
    character_name: str
    is_ready: bool = False
    is_host: bool = False
    character_background: str | None = None
    character_generation_status: CharacterGenerationStatus = "idle"
    character_generation_error: str | None = None
    character_sheet: CharacterSheet | None = None

    # Mirrored from the sheet for quick access
    race: str | None = None
    character_class: str | None = None
    skills: list[str] | None = None
    hp: int | None = None
    strength: int | None = None
    dexterity: int | None = None
    constitution: int | None = None
    intelligence: int | None = None
    wisdom: int | None = None
    charisma: int | None = None

    @property
    def display_name(self) -> str:
        if self.character_sheet and self.character_sheet.name:
            return self.character_sheet.name
        return self.character_name


# ---------------------------------------------------------------------------
# Rooms + grid
# ---------------------------------------------------------------------------

class GridPosition(BaseModel):
    x: int
    y: int


class GridCell(BaseModel):
    type: CellType = "empty"
    npc_name: str | None = None
    equipment_name: str | None = None
    player_id: str | None = None


class EquipmentPosition(BaseModel):
    equipment_name: str
    position: GridPosition


class PlayerPosition(BaseModel):
    character_name: str
    position: GridPosition


class RoomGridMap(BaseModel):
    width: int
    height: int
    cells: list[list[GridCell]]  # indexed [y][x]
    player_spawn_position: GridPosition
    npc_position: GridPosition
    equipment_positions: list[EquipmentPosition] = Field(default_factory=list)
    player_positions: list[PlayerPosition] = Field(default_factory=list)


class Npc(BaseModel):
    npc_name: str
    disposition: Literal["bad", "neutral", "good"]
    damage: int = Field(ge=0, le=5, description="Damage the NPC deals when hostile (0-5)")


class Room(BaseModel):
    npc: Npc
    room_description: str
    equipments: list[str] = Field(default_factory=list)
    grid_map: RoomGridMap | None = None


class RoomPlan(BaseModel):
    """Generated rooms, one per story section, in narration order."""

    rooms: list[Room]


# ---------------------------------------------------------------------------
# Narration state
# ---------------------------------------------------------------------------

class ChatMessage(BaseModel):
    role: ChatRole
    content: str


class StorySection(BaseModel):
    id: int
    heading: str
    story_part: str
    section_status: SectionStatus = "pending"
    interactions_taken_in_the_room: list[ChatMessage] = Field(default_factory=list)


class GameState(BaseModel):
    story_sections: list[StorySection]

    def current_section(self) -> StorySection | None:
        for section in self.story_sections:
            if section.section_status == "being_narrated":
                return section
        return None

    @property
    def is_finished(self) -> bool:
        return all(s.section_status == "has_completed" for s in self.story_sections)


class Game(BaseModel):
    room_code: str
    status: GameStatus = "generating"
    world_data: WorldData
    story: str | None = None
    room_data: RoomPlan | None = None
    narrator_voice_id: str | None = None
    game_state: GameState | None = None
    players: list[Player] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)

    def find_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None
