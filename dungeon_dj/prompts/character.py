"""Character sheet generation prompts."""

from dungeon_dj.models import Game, Player

from .render import render_prompt

CHARACTER_SYSTEM_PROMPT = """\
You are an award-winning tabletop RPG designer who creates concise, game-ready character sheets.

Objective:
Given campaign context and a player's raw background notes, produce a balanced first-level character sheet formatted strictly as JSON. The sheet must be playable in a Dungeons & Dragons 5e style game while keeping flavor from the provided background.

Guidelines:
- Keep numbers believable for level 1 heroes (ability scores between 8-18, hit points 6-16).
- Skills, equipment, and special abilities must relate to the setting and background.
- Avoid rules jargon that doesn't exist in 5e.
- Never include markdown, commentary, or code fences in the response. JSON only.
"""

CHARACTER_USER_TEMPLATE = """\
<campaign>
  <genre>{{{world.genre}}}</genre>
  <teamBackground>{{{world.team_background}}}</teamBackground>
  <storyGoal>{{{world.story_goal}}}</storyGoal>
  <storyIdea>{{{world.story_idea}}}</storyIdea>
  <facilitatorPersona>{{{world.facilitator_persona}}}</facilitatorPersona>
  <storyContext>{{{story}}}</storyContext>
</campaign>

<playerCharacter>
  <preferredName>{{{character_name}}}</preferredName>
  <background>{{{background}}}</background>
</playerCharacter>

Return a JSON object that fully describes this character sheet.
"""


def character_system_prompt() -> str:
    return CHARACTER_SYSTEM_PROMPT


def character_user_prompt(game: Game, player: Player, background: str) -> str:
    return render_prompt(CHARACTER_USER_TEMPLATE, {
        "world": game.world_data.model_dump(),
        "story": game.story or "",
        "character_name": player.character_name,
        "background": background,
    })
