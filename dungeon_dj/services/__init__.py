"""Services that orchestrate LLM, voice and the session store.

  scene        world story, room plan with grids, narrator voice
  characters   character sheets from player backgrounds
  facilitator  narration state machine and tool dispatch
"""

from .characters import create_character_for_player, generate_character_sheet  # noqa: F401
from .facilitator import FacilitatorResponse, build_game_state, facilitator_agent  # noqa: F401
from .scene import GameScene, generate_scene_for_game, set_the_game_scene  # noqa: F401
