"""Facilitator: narration state machine and tool dispatch for one game.

Narration state (GameState) is built lazily on the first call: the LLM splits
the story into one {heading, story_part} per room. Section 0 starts
`being_narrated` with its story part seeded as the first system turn; the
rest are `pending`. Sections only move forward:

    pending → being_narrated → has_completed

and only through the finish_current_story_section tool.

One call of facilitator_agent():
  1. Ensure game state; find the section being narrated.
  2. No utterance → replay: speak the section's story part. No LLM call.
  3. Utterance → chat completion with the section's interaction log and the
     tools available for the room (see dungeon_dj.tools).
  4. Dispatch the reply: plain text, or exactly one ToolAction handler.
     Handlers mutate a copy of the state in memory.
  5. Speech synthesis and persistence run concurrently; both finish before
     returning. If synthesis fails the previous state is written back.

Calls for the same room code are serialised with the store's per-room lock.
When the last section completes the game becomes `completed`; later calls
raise SessionCompletedError.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import get_args

from pydantic import BaseModel, Field

from dungeon_dj import prompts
from dungeon_dj.game_store import GameStore
from dungeon_dj.grid import MoveTarget, initialize_player_positions, move_player_on_grid, remove_equipment_from_grid
from dungeon_dj.llm import ChatLLM, LLMParseError, json_schema_format, parse_structured
from dungeon_dj.models import ChatMessage, Game, GameState, GameStatus, Room, RoomPlan, StorySection
from dungeon_dj.tools import FinishSection, MovePlayer, ProvideEquipment, ToolAction, facilitator_tools, parse_tool_call
from dungeon_dj.voice import Voice

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class FacilitatorError(RuntimeError):
    """A precondition for narrating this game does not hold."""


class NoActiveSectionError(FacilitatorError):
    pass


class MissingNarratorVoiceError(FacilitatorError):
    pass


class MissingRoomDataError(FacilitatorError):
    pass


class MissingStoryError(FacilitatorError):
    pass


class SessionCompletedError(FacilitatorError):
    """Every section has been narrated; the session is over."""


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

class StoryHeading(BaseModel):
    heading: str = Field(description="Heading of the story part")
    story_part: str = Field(description="Story part corresponding to the heading")


class StoryHeadings(BaseModel):
    headings: list[StoryHeading] = Field(
        description="Story headings and their parts, one per room, in room order"
    )


class FacilitatorResponse(BaseModel):
    audio: bytes
    text: str
    current_room: Room | None = None
    current_section_id: int | None = None


@dataclass
class _Turn:
    """Working copies for one turn; committed only if the turn succeeds."""

    game: Game
    state: GameState
    section: StorySection
    room_plan: RoomPlan | None
    player_names: list[str]
    room_plan_changed: bool = False
    new_status: GameStatus | None = None

    @property
    def room(self) -> Room | None:
        return _room_for(self.room_plan, self.section)


def _room_for(room_plan: RoomPlan | None, section: StorySection | None) -> Room | None:
    if room_plan is None or section is None:
        return None
    if 0 <= section.id < len(room_plan.rooms):
        return room_plan.rooms[section.id]
    return None


# ---------------------------------------------------------------------------
# Game state construction
# ---------------------------------------------------------------------------

async def build_game_state(game: Game, *, llm: ChatLLM) -> GameState:
    """Segment the story into one section per room."""
    if not game.story:
        raise MissingStoryError(f"Game {game.room_code} has no generated story")
    rooms = game.room_data.rooms if game.room_data else []

    reply = await llm(
        "headings",
        [
            ChatMessage(role="system", content=prompts.headings_system_prompt()),
            ChatMessage(role="user", content=prompts.headings_user_prompt(rooms, game.story)),
        ],
        response_format=json_schema_format("StoryHeadingMapResponse", StoryHeadings),
    )
    parsed = parse_structured(reply, StoryHeadings, "story headings")
    if not parsed.headings:
        raise LLMParseError("Story headings response contained no sections")
    if rooms and len(parsed.headings) != len(rooms):
        logger.warning(
            "game %s: %d story sections for %d rooms",
            game.room_code, len(parsed.headings), len(rooms),
        )

    sections = [
        StorySection(id=i, heading=h.heading, story_part=h.story_part)
        for i, h in enumerate(parsed.headings)
    ]
    _start_section(sections[0])
    return GameState(story_sections=sections)


def _start_section(section: StorySection) -> None:
    section.section_status = "being_narrated"
    if not section.interactions_taken_in_the_room:
        section.interactions_taken_in_the_room.append(
            ChatMessage(role="system", content=section.story_part)
        )


# ---------------------------------------------------------------------------
# Tool handlers: each returns the text to speak
# ---------------------------------------------------------------------------

async def _finish_section(turn: _Turn, action: FinishSection) -> str:
    text = action.smooth_transition_message
    turn.section.interactions_taken_in_the_room.append(ChatMessage(role="assistant", content=text))
    turn.section.section_status = "has_completed"

    next_section = next(
        (s for s in turn.state.story_sections
         if s.id > turn.section.id and s.section_status == "pending"),
        None,
    )
    if next_section is None:
        turn.new_status = "completed"
        logger.info("game %s: final section %d completed", turn.game.room_code, turn.section.id)
    else:
        _start_section(next_section)
        logger.info(
            "game %s: section %d -> %d", turn.game.room_code, turn.section.id, next_section.id,
        )
    return text


async def _provide_equipment(turn: _Turn, action: ProvideEquipment) -> str:
    room = turn.room
    if room is None:
        raise MissingRoomDataError(
            f"No room data for section {turn.section.id} of game {turn.game.room_code}"
        )
    if action.provided_equipment not in room.equipments:
        raise LLMParseError(f"Equipment {action.provided_equipment!r} is not in the current room")

    turn.section.interactions_taken_in_the_room.append(
        ChatMessage(role="assistant", content=action.message)
    )
    room.equipments.remove(action.provided_equipment)
    if room.grid_map is not None:
        room.grid_map = remove_equipment_from_grid(room.grid_map, action.provided_equipment)
    turn.room_plan_changed = True
    logger.info("game %s: handed out %s", turn.game.room_code, action.provided_equipment)
    return action.message


async def _move_player(turn: _Turn, action: MovePlayer) -> str:
    room = turn.room
    if room is None or room.grid_map is None:
        raise MissingRoomDataError(
            f"No grid for section {turn.section.id} of game {turn.game.room_code}"
        )
    grid = room.grid_map
    if not grid.player_positions:
        grid = initialize_player_positions(grid, turn.player_names)

    target = MoveTarget(type=action.target_type, equipment_name=action.equipment_name)
    room.grid_map = move_player_on_grid(grid, action.player_name, target)
    turn.room_plan_changed = True

    turn.section.interactions_taken_in_the_room.append(
        ChatMessage(role="assistant", content=action.message)
    )
    return action.message


_Handler = Callable[[_Turn, ToolAction], Awaitable[str]]

_HANDLERS: dict[type, _Handler] = {
    FinishSection: _finish_section,
    ProvideEquipment: _provide_equipment,
    MovePlayer: _move_player,
}

assert set(_HANDLERS) == set(get_args(get_args(ToolAction)[0])), "every ToolAction needs a handler"


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

async def facilitator_agent(
    store: GameStore,
    game: Game,
    utterance: str | None = None,
    *,
    llm: ChatLLM,
    voice: Voice,
) -> FacilitatorResponse:
    """Narrate the current section (no utterance) or answer a player's utterance."""
    async with store.lock(game.room_code):
        return await _run_turn(store, game, utterance, llm=llm, voice=voice)


async def _run_turn(
    store: GameStore,
    game: Game,
    utterance: str | None,
    *,
    llm: ChatLLM,
    voice: Voice,
) -> FacilitatorResponse:
    if game.status == "completed" or (game.game_state and game.game_state.is_finished):
        raise SessionCompletedError(f"Game {game.room_code} has finished")
    voice_id = game.narrator_voice_id
    if not voice_id:
        raise MissingNarratorVoiceError(f"Game {game.room_code} has no narrator voice")

    if game.game_state is None:
        state = await build_game_state(game, llm=llm)
        await store.save_game_state(game.room_code, state)
        game.game_state = state
        if game.status == "ready":
            await store.update_game_status(game.room_code, "in-progress")
            game.status = "in-progress"

    current = game.game_state.current_section()
    if current is None:
        raise NoActiveSectionError(f"No story section is being narrated in game {game.room_code}")

    if not utterance:
        audio = await voice.synthesize(voice_id, current.story_part)
        return FacilitatorResponse(
            audio=audio,
            text=current.story_part,
            current_room=_room_for(game.room_data, current),
            current_section_id=current.id,
        )

    state = game.game_state.model_copy(deep=True)
    turn = _Turn(
        game=game,
        state=state,
        section=state.current_section(),
        room_plan=game.room_data.model_copy(deep=True) if game.room_data else None,
        player_names=[p.display_name for p in game.players],
    )
    text = await _respond(turn, utterance, llm)

    previous_state, previous_plan, previous_status = game.game_state, game.room_data, game.status
    audio, *written = await asyncio.gather(
        voice.synthesize(voice_id, text),
        *_writes(
            store, game.room_code, turn.state,
            turn.room_plan if turn.room_plan_changed else None,
            turn.new_status,
        ),
        return_exceptions=True,
    )
    if isinstance(audio, BaseException):
        # the writes may already have landed; put the old turn back
        logger.warning("game %s: speech failed, restoring previous state", game.room_code)
        await asyncio.gather(*_writes(
            store, game.room_code, previous_state,
            previous_plan if turn.room_plan_changed else None,
            previous_status if turn.new_status else None,
        ))
        raise audio
    for result in written:
        if isinstance(result, BaseException):
            raise result

    now_narrated = turn.state.current_section()
    return FacilitatorResponse(
        audio=audio,
        text=text,
        current_room=_room_for(turn.room_plan, now_narrated or turn.section),
        current_section_id=now_narrated.id if now_narrated else None,
    )


def _writes(
    store: GameStore,
    room_code: str,
    state: GameState,
    room_plan: RoomPlan | None,
    status: GameStatus | None,
) -> list[Awaitable]:
    pending: list[Awaitable] = [store.save_game_state(room_code, state)]
    if room_plan is not None:
        pending.append(store.save_room_plan(room_code, room_plan))
    if status:
        pending.append(store.update_game_status(room_code, status))
    return pending


async def _respond(turn: _Turn, utterance: str, llm: ChatLLM) -> str:
    """Ask the LLM about the utterance and apply its decision to the turn."""
    room = turn.room
    section = turn.section
    messages = [
        ChatMessage(
            role="system",
            content=prompts.facilitator_system_prompt(turn.game.world_data.facilitator_persona),
        ),
        *section.interactions_taken_in_the_room,
        ChatMessage(role="user", content=prompts.facilitator_user_prompt(
            section.story_part,
            utterance,
            turn.player_names,
            room.equipments if room else None,
        )),
    ]
    reply = await llm(
        "facilitator", messages, tools=facilitator_tools(room, turn.player_names),
    )
    section.interactions_taken_in_the_room.append(ChatMessage(role="user", content=utterance))

    if reply.tool_calls:
        if len(reply.tool_calls) > 1:
            logger.warning(
                "game %s: %d tool calls, only %s is applied",
                turn.game.room_code, len(reply.tool_calls), reply.tool_calls[0].name,
            )
        action = parse_tool_call(reply.tool_calls[0])
        return await _HANDLERS[type(action)](turn, action)

    if reply.content:
        section.interactions_taken_in_the_room.append(
            ChatMessage(role="assistant", content=reply.content)
        )
        return reply.content

    raise LLMParseError("Facilitator reply contained neither text nor a tool call")
