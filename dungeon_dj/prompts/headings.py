"""Story segmentation prompts: one heading + story part per room."""

from dungeon_dj.models import Room

from .render import render_prompt

HEADINGS_SYSTEM_PROMPT = """\
You are an experienced Dungeon Master with an exceptional ability to separate a story into clear headings and corresponding story parts.

Objective:
Break the provided story into distinct sections, one per room, each with a clear heading and the story part for that heading. You will be narrating each section aloud.
At the end of each part you must prompt the players to decide what to do next.

Rules:
- Produce exactly one section per listed room, in the same order as the rooms.
- The introduction always belongs to the same section as the very first room.
- Each heading must clearly indicate the part of the story it represents.
- The story parts must be engaging and maintain the flow of the overall narrative.
"""

HEADINGS_USER_TEMPLATE = """\
<room-descriptions>
{{#numbered rooms}}{{n}}. {{{item.room_description}}}
{{/numbered}}</room-descriptions>
<story>{{{story}}}</story>
"""


def headings_system_prompt() -> str:
    return HEADINGS_SYSTEM_PROMPT


def headings_user_prompt(rooms: list[Room], story: str) -> str:
    return render_prompt(HEADINGS_USER_TEMPLATE, {
        "rooms": [r.model_dump(exclude={"grid_map"}) for r in rooms],
        "story": story,
    })
