"""Facilitator tool definitions and the closed set of tool actions.

Tools offered for a section:
  finish_current_story_section            always
  provide_one_equipment_from_current_room only while the room has equipment left
  move_player                             always

A tool call from the model is validated into exactly one ToolAction variant.
Adding a tool means adding a variant here and a handler in the facilitator.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from dungeon_dj.llm import LLMParseError, ToolCall, parse_arguments
from dungeon_dj.models import Room

FINISH_SECTION = "finish_current_story_section"
PROVIDE_EQUIPMENT = "provide_one_equipment_from_current_room"
MOVE_PLAYER = "move_player"


class FinishSection(BaseModel):
    tool: Literal["finish_current_story_section"] = FINISH_SECTION
    smooth_transition_message: str


class ProvideEquipment(BaseModel):
    tool: Literal["provide_one_equipment_from_current_room"] = PROVIDE_EQUIPMENT
    provided_equipment: str
    message: str


class MovePlayer(BaseModel):
    tool: Literal["move_player"] = MOVE_PLAYER
    player_name: str
    target_type: Literal["npc", "equipment", "wall", "random"] = "random"
    equipment_name: str | None = None
    message: str


ToolAction = Annotated[
    Union[FinishSection, ProvideEquipment, MovePlayer],
    Field(discriminator="tool"),
]

_action_adapter: TypeAdapter[ToolAction] = TypeAdapter(ToolAction)


def _function(name: str, description: str, properties: dict, required: list[str]) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }


def facilitator_tools(room: Room | None, player_names: list[str]) -> list[dict]:
    """Tool definitions available while `room` is being narrated."""
    tools = [
        _function(
            FINISH_SECTION,
            "Finishes the current story section and moves to the next one",
            {
                "smooth_transition_message": {
                    "type": "string",
                    "description": "A message that smoothly transitions from the current "
                                   "story section to the next one.",
                },
            },
            ["smooth_transition_message"],
        ),
    ]

    if room is not None and room.equipments:
        tools.append(_function(
            PROVIDE_EQUIPMENT,
            "During interactions you can choose to provide one equipment found in the "
            "current room to the players. Use this function when appropriate.",
            {
                "provided_equipment": {
                    "type": "string",
                    "description": "The equipment provided to the players from the current room.",
                    "enum": list(room.equipments),
                },
                "message": {
                    "type": "string",
                    "description": "A message describing how the players found the equipment "
                                   "in the room and describing the equipment itself.",
                },
            },
            ["provided_equipment", "message"],
        ))

    player_name: dict = {
        "type": "string",
        "description": "Name of the player character who moves.",
    }
    if player_names:
        player_name["enum"] = list(player_names)
    tools.append(_function(
        MOVE_PLAYER,
        "Moves one player character inside the current room, e.g. towards the NPC, "
        "towards a piece of equipment or to a wall.",
        {
            "player_name": player_name,
            "target_type": {
                "type": "string",
                "enum": ["npc", "equipment", "wall", "random"],
                "description": "Where the player moves to.",
            },
            "equipment_name": {
                "type": "string",
                "description": "Equipment to walk to when target_type is equipment.",
            },
            "message": {
                "type": "string",
                "description": "Narration of the movement.",
            },
        },
        ["player_name", "target_type", "message"],
    ))
    return tools


def parse_tool_call(call: ToolCall) -> ToolAction:
    """Validate a model tool call into a ToolAction.

    Unknown tools and invalid arguments raise LLMParseError.
    """
    args = parse_arguments(call)
    args["tool"] = call.name
    try:
        return _action_adapter.validate_python(args)
    except ValidationError as e:
        raise LLMParseError(f"Unsupported or invalid tool call: {call.name}") from e
