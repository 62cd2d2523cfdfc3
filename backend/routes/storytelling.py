"""Narration endpoints: replay the current section, or answer a player."""

import base64

from fastapi import APIRouter, Depends, HTTPException

from backend.state import Services, get_services
from dungeon_dj.grid import GridError
from dungeon_dj.llm import LLMError
from dungeon_dj.services import FacilitatorResponse, facilitator_agent
from dungeon_dj.services.facilitator import FacilitatorError
from dungeon_dj.voice import VoiceError

from .models import NarrateBody, NarrationOut, RespondBody

router = APIRouter()


def _out(response: FacilitatorResponse) -> NarrationOut:
    return NarrationOut(
        audio=base64.b64encode(response.audio).decode("ascii"),
        text=response.text,
        current_room=response.current_room,
        current_section_id=response.current_section_id,
    )


async def _run(services: Services, room_code: str, transcript: str | None) -> NarrationOut:
    game = await services.store.get_game(room_code)
    if not game:
        raise HTTPException(404, "Game not found")
    try:
        response = await facilitator_agent(
            services.store, game, transcript, llm=services.llm, voice=services.voice,
        )
    except (FacilitatorError, GridError) as e:
        raise HTTPException(409, str(e))
    except (LLMError, VoiceError) as e:
        raise HTTPException(502, f"Failed to process facilitator response: {e}")
    return _out(response)


@router.post("/storytelling/narrate")
async def narrate(body: NarrateBody, services: Services = Depends(get_services)):
    """Speak the story section currently being narrated."""
    return await _run(services, body.room_code, None)


@router.post("/storytelling/respond")
async def respond(body: RespondBody, services: Services = Depends(get_services)):
    """Answer a player's transcribed utterance."""
    return await _run(services, body.room_code, body.transcript)
