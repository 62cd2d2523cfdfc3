"""Game lifecycle and lobby endpoints."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path

from backend.state import Services, get_services
from dungeon_dj.game_store import DuplicatePlayerError, new_player_id
from dungeon_dj.models import Player
from dungeon_dj.services import generate_scene_for_game
from dungeon_dj.story_parser import StoryParseError, parse_introduction, split_into_sentences

from .models import ROOM_CODE_PATTERN, CreateGame, JoinGame, LeaveBody, ReadyBody

router = APIRouter()


@router.post("/games", status_code=201)
async def create_game(
    body: CreateGame,
    background: BackgroundTasks,
    services: Services = Depends(get_services),
):
    """Create a game and start generating its story, rooms and narrator voice."""
    game = await services.store.create_game(body.world_data)
    background.add_task(
        generate_scene_for_game,
        services.store,
        game.room_code,
        llm=services.llm,
        voice=services.voice,
    )
    return {"room_code": game.room_code}


@router.get("/games/{room_code}")
async def get_game(
    room_code: str = Path(pattern=ROOM_CODE_PATTERN),
    services: Services = Depends(get_services),
):
    """Get the full game record including players."""
    game = await services.store.get_game(room_code)
    if not game:
        raise HTTPException(404, "Game not found")
    return {"game": game}


@router.delete("/games/{room_code}")
async def delete_game(
    room_code: str = Path(pattern=ROOM_CODE_PATTERN),
    services: Services = Depends(get_services),
):
    """Delete a game (host action)."""
    if not await services.store.delete_game(room_code):
        raise HTTPException(404, "Game not found")
    return {"ok": True}


@router.post("/games/join")
async def join_game(body: JoinGame, services: Services = Depends(get_services)):
    """Join a game with a character name; the name must be unique in the game."""
    player = Player(id=new_player_id(), character_name=body.character_name)
    try:
        game = await services.store.add_player(body.room_code, player)
    except DuplicatePlayerError:
        raise HTTPException(409, "Character name already taken")
    if not game:
        raise HTTPException(404, "Game not found")
    return {"player_id": player.id}


@router.post("/games/ready")
async def set_ready(body: ReadyBody, services: Services = Depends(get_services)):
    """Toggle a player's ready flag."""
    game = await services.store.update_player_ready(body.room_code, body.player_id, body.is_ready)
    if not game:
        raise HTTPException(404, "Game or player not found")
    return {"success": True}


@router.post("/games/leave")
async def leave_game(body: LeaveBody, services: Services = Depends(get_services)):
    """Remove a player from the lobby."""
    game = await services.store.remove_player(body.room_code, body.player_id)
    if not game:
        raise HTTPException(404, "Game not found")
    return {"success": True}


@router.post("/games/{room_code}/start")
async def start_game(
    room_code: str = Path(pattern=ROOM_CODE_PATTERN),
    services: Services = Depends(get_services),
):
    """Start the session once the world is ready and every player is ready."""
    game = await services.store.get_game(room_code)
    if not game:
        raise HTTPException(404, "Game not found")
    if game.status != "ready":
        raise HTTPException(409, f"Game is {game.status}, not ready")
    if not game.players or not all(p.is_ready for p in game.players):
        raise HTTPException(409, "Not every player is ready")
    await services.store.update_game_status(room_code, "in-progress")
    return {"success": True}


@router.get("/games/{room_code}/introduction")
async def get_introduction(
    room_code: str = Path(pattern=ROOM_CODE_PATTERN),
    services: Services = Depends(get_services),
):
    """The story introduction, whole and split into sentences for progressive display."""
    game = await services.store.get_game(room_code)
    if not game:
        raise HTTPException(404, "Game not found")
    if not game.story:
        raise HTTPException(409, f"Game is {game.status}, story not generated yet")
    try:
        introduction = parse_introduction(game.story)
    except StoryParseError as e:
        raise HTTPException(502, str(e))
    return {"introduction": introduction, "sentences": split_into_sentences(introduction)}
