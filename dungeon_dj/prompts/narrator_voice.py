"""Narrator voice description prompts."""

from .render import render_prompt

MAX_VOICE_DESCRIPTION = 900

NARRATOR_VOICE_SYSTEM_PROMPT = f"""\
You are an experienced voice creator for characters and narrators in games.

Objective:
Your task is to generate a short description, up to {MAX_VOICE_DESCRIPTION} characters, of the most suitable narrator voice for the provided game story.

Rules:
- The voice description must be no longer than {MAX_VOICE_DESCRIPTION} characters.
- It has to be engaging and suitable for the story.
- Respect the facilitator persona when one is given.
"""

NARRATOR_VOICE_USER_TEMPLATE = """\
<game-story>{{{story}}}</game-story>
{{#if persona}}<facilitator-persona>{{{persona}}}</facilitator-persona>{{/if}}
"""


def narrator_voice_system_prompt() -> str:
    return NARRATOR_VOICE_SYSTEM_PROMPT


def narrator_voice_user_prompt(story: str, persona: str = "") -> str:
    return render_prompt(NARRATOR_VOICE_USER_TEMPLATE, {"story": story, "persona": persona})
