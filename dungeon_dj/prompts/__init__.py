"""Prompt builders: one (system, user) pair per LLM task.

Tasks:
  story           world story from the host's world data
  room_map        room plan (NPC, description, equipment) from the story
  character       character sheet from a player's background
  narrator_voice  narrator voice description (<= 900 chars) from the story
  headings        story segmentation into one section per room
  facilitator     in-room interaction replies

User prompts interpolate caller text raw into tagged blocks. Inputs are not
validated here; length limits are enforced at the web boundary.
"""

from .character import character_system_prompt, character_user_prompt  # noqa: F401
from .facilitator import facilitator_system_prompt, facilitator_user_prompt  # noqa: F401
from .headings import headings_system_prompt, headings_user_prompt  # noqa: F401
from .narrator_voice import (  # noqa: F401
    MAX_VOICE_DESCRIPTION,
    narrator_voice_system_prompt,
    narrator_voice_user_prompt,
)
from .render import PromptError, render_prompt  # noqa: F401
from .room_map import room_map_system_prompt, room_map_user_prompt  # noqa: F401
from .story import story_system_prompt, story_user_prompt  # noqa: F401
