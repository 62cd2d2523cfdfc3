"""World generation: story, room plan with grids, and narrator voice.

  1. Story: one free-text chat completion from the world data.
  2. In parallel:
       a. room plan: schema-constrained chat completion (RoomPlan)
       b. narrator voice: description (<= 900 chars) then voice design
  3. A fresh grid is attached to every room.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel

from dungeon_dj import prompts
from dungeon_dj.game_store import GameStore
from dungeon_dj.grid import GridError, generate_all_room_grids
from dungeon_dj.llm import ChatLLM, LLMError, LLMParseError, json_schema_format, parse_structured
from dungeon_dj.models import ChatMessage, Game, RoomPlan
from dungeon_dj.voice import Voice, VoiceError

logger = logging.getLogger(__name__)

# Voice design accepts sample text of at most this many characters
MAX_VOICE_SAMPLE = 1000


class GameScene(BaseModel):
    story: str
    room_plan: RoomPlan
    narrator_voice_id: str


async def generate_game_story(game: Game, llm: ChatLLM) -> str:
    reply = await llm("story", [
        ChatMessage(role="system", content=prompts.story_system_prompt()),
        ChatMessage(role="user", content=prompts.story_user_prompt(game.world_data)),
    ])
    if not reply.content:
        raise LLMParseError("No story generated")
    return reply.content


async def generate_game_map(story: str, llm: ChatLLM) -> RoomPlan:
    reply = await llm(
        "room_map",
        [
            ChatMessage(role="system", content=prompts.room_map_system_prompt()),
            ChatMessage(role="user", content=prompts.room_map_user_prompt(story)),
        ],
        response_format=json_schema_format("RoomsPlanResponse", RoomPlan),
    )
    plan = parse_structured(reply, RoomPlan, "OpenAI response")
    if not plan.rooms:
        raise LLMParseError("Room plan contains no rooms")
    return plan


async def generate_narrator_voice(
    story: str, facilitator_persona: str, llm: ChatLLM, voice: Voice,
) -> str:
    """Describe a narrator voice for the story and design it; returns the voice id."""
    reply = await llm("narrator_voice", [
        ChatMessage(role="system", content=prompts.narrator_voice_system_prompt()),
        ChatMessage(role="user", content=prompts.narrator_voice_user_prompt(story, facilitator_persona)),
    ])
    description = (reply.content or "").strip()[:prompts.MAX_VOICE_DESCRIPTION]
    if not description:
        raise LLMParseError("No narrator voice description generated")
    sample = (facilitator_persona or story)[:MAX_VOICE_SAMPLE]
    return await voice.design_voice(description, sample)


async def set_the_game_scene(game: Game, *, llm: ChatLLM, voice: Voice) -> GameScene:
    story = await generate_game_story(game, llm)

    room_plan, voice_id = await asyncio.gather(
        generate_game_map(story, llm),
        generate_narrator_voice(story, game.world_data.facilitator_persona, llm, voice),
    )

    rooms = generate_all_room_grids(room_plan.rooms)
    return GameScene(story=story, room_plan=RoomPlan(rooms=rooms), narrator_voice_id=voice_id)


async def generate_scene_for_game(
    store: GameStore, room_code: str, *, llm: ChatLLM, voice: Voice,
) -> None:
    """Background job: generate the scene and move the game to ready, or error on failure."""
    game = await store.get_game(room_code)
    if game is None:
        logger.warning("scene generation skipped: game %s no longer exists", room_code)
        return

    try:
        scene = await set_the_game_scene(game, llm=llm, voice=voice)
    except (LLMError, VoiceError, GridError, prompts.PromptError) as e:
        logger.error("scene generation failed for %s: %s", room_code, e)
        await store.update_game_status(room_code, "error")
        return
    except Exception:
        # nothing awaits this job; an escaped error would leave the game generating
        logger.exception("unexpected scene generation failure for %s", room_code)
        await store.update_game_status(room_code, "error")
        return

    await store.set_scene(room_code, scene.story, scene.room_plan, scene.narrator_voice_id)
    logger.info("game %s ready with %d rooms", room_code, len(scene.room_plan.rooms))
