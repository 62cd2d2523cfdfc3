"""Room grid maps: placement of NPC, equipment and player tokens.

Each room gets a GRID_SIZE x GRID_SIZE grid. Cells are indexed [y][x].

Generation order:
  1. Player spawn: one of four wall-adjacent midpoints, reserved first.
  2. NPC: random unclaimed cell.
  3. Equipment: one random unclaimed cell per item.
Random placement retries up to MAX_PLACEMENT_ATTEMPTS times, then fails.

Every transform returns a new grid; the input grid is never mutated.
Players are tracked in `player_positions` by character name (case-insensitive
lookup); static items live in `cells`.
"""

from __future__ import annotations

import logging
import random
from typing import Literal

from pydantic import BaseModel

from dungeon_dj.models import (
    EquipmentPosition,
    GridCell,
    GridPosition,
    PlayerPosition,
    Room,
    RoomGridMap,
)

logger = logging.getLogger(__name__)

GRID_SIZE = 9
MAX_PLACEMENT_ATTEMPTS = 100
RANDOM_WALK_STEP = 3


class GridError(Exception):
    """Raised for placement exhaustion, invalid NPC moves and unknown players."""


class MoveTarget(BaseModel):
    """Where a player should move.

    npc         next to the room's NPC
    equipment   next to `equipment_name`
    wall        onto the nearest wall cell
    coordinate  to `position` (clamped)
    random      random walk of up to RANDOM_WALK_STEP cells per axis
    """

    type: Literal["npc", "equipment", "wall", "coordinate", "random"] = "random"
    equipment_name: str | None = None
    position: GridPosition | None = None


def spawn_candidates(size: int = GRID_SIZE) -> list[GridPosition]:
    mid = size // 2
    return [
        GridPosition(x=mid, y=1),           # top wall
        GridPosition(x=mid, y=size - 2),    # bottom wall
        GridPosition(x=1, y=mid),           # left wall
        GridPosition(x=size - 2, y=mid),    # right wall
    ]


def generate_room_grid(room: Room, rng: random.Random | None = None) -> RoomGridMap:
    """Build a fresh grid for `room` with non-colliding placements."""
    rng = rng or random.Random()
    size = GRID_SIZE
    cells = [[GridCell() for _ in range(size)] for _ in range(size)]
    used: set[tuple[int, int]] = set()

    def random_free_position() -> GridPosition:
        for _ in range(MAX_PLACEMENT_ATTEMPTS):
            x, y = rng.randrange(size), rng.randrange(size)
            if (x, y) not in used:
                used.add((x, y))
                return GridPosition(x=x, y=y)
        raise GridError(
            f"Could not find empty position after {MAX_PLACEMENT_ATTEMPTS} attempts"
        )

    spawn = rng.choice(spawn_candidates(size))
    used.add((spawn.x, spawn.y))

    npc_position = random_free_position()
    cells[npc_position.y][npc_position.x] = GridCell(type="npc", npc_name=room.npc.npc_name)

    equipment_positions = []
    for name in room.equipments:
        position = random_free_position()
        cells[position.y][position.x] = GridCell(type="equipment", equipment_name=name)
        equipment_positions.append(EquipmentPosition(equipment_name=name, position=position))

    return RoomGridMap(
        width=size,
        height=size,
        cells=cells,
        player_spawn_position=spawn,
        npc_position=npc_position,
        equipment_positions=equipment_positions,
    )


def generate_all_room_grids(rooms: list[Room], rng: random.Random | None = None) -> list[Room]:
    return [
        room.model_copy(update={"grid_map": generate_room_grid(room, rng)})
        for room in rooms
    ]


def _copy(grid: RoomGridMap) -> RoomGridMap:
    return grid.model_copy(deep=True)


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper - 1))


def initialize_player_positions(grid: RoomGridMap, character_names: list[str]) -> RoomGridMap:
    """Place every named player on the spawn cell."""
    seen: set[str] = set()
    for name in character_names:
        key = name.lower()
        if key in seen:
            logger.warning(
                "Duplicate character name %r on grid; movement will only find the first", name,
            )
        seen.add(key)

    new_grid = _copy(grid)
    new_grid.player_positions = [
        PlayerPosition(character_name=name, position=grid.player_spawn_position.model_copy())
        for name in character_names
    ]
    return new_grid


def add_player_to_room_grid(grid: RoomGridMap, player_id: str) -> RoomGridMap:
    """Mark the spawn cell as holding `player_id`."""
    new_grid = _copy(grid)
    spawn = new_grid.player_spawn_position
    existing = new_grid.cells[spawn.y][spawn.x]
    new_grid.cells[spawn.y][spawn.x] = existing.model_copy(
        update={"type": "player", "player_id": player_id}
    )
    return new_grid


def remove_equipment_from_grid(grid: RoomGridMap, equipment_name: str) -> RoomGridMap:
    """Clear one equipment cell. Unknown items leave the grid unchanged.

    With duplicate names only the first placement is removed.
    """
    index = next(
        (i for i, e in enumerate(grid.equipment_positions) if e.equipment_name == equipment_name),
        None,
    )
    if index is None:
        logger.warning("Equipment %s not found on grid", equipment_name)
        return grid

    new_grid = _copy(grid)
    entry = new_grid.equipment_positions.pop(index)
    new_grid.cells[entry.position.y][entry.position.x] = GridCell()
    return new_grid


def move_npc_on_grid(grid: RoomGridMap, new_position: GridPosition) -> RoomGridMap:
    """Move the NPC to an in-bounds cell that is empty or already its own."""
    old = grid.npc_position
    if not (0 <= new_position.x < grid.width and 0 <= new_position.y < grid.height):
        raise GridError(f"NPC position ({new_position.x}, {new_position.y}) is out of bounds")
    if new_position != old and not is_position_valid(grid, new_position):
        raise GridError(f"NPC cannot move onto occupied cell ({new_position.x}, {new_position.y})")

    new_grid = _copy(grid)
    npc_name = grid.cells[old.y][old.x].npc_name
    new_grid.cells[old.y][old.x] = GridCell()
    new_grid.cells[new_position.y][new_position.x] = GridCell(type="npc", npc_name=npc_name)
    new_grid.npc_position = new_position.model_copy()
    return new_grid


def is_position_valid(grid: RoomGridMap, position: GridPosition) -> bool:
    """In bounds and currently empty."""
    if not (0 <= position.x < grid.width and 0 <= position.y < grid.height):
        return False
    return grid.cells[position.y][position.x].type == "empty"


def _next_to(grid: RoomGridMap, anchor: GridPosition, start: GridPosition) -> GridPosition:
    """The in-bounds neighbour of `anchor` closest to `start`, preferring empty cells."""
    neighbours = []
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            x, y = anchor.x + dx, anchor.y + dy
            if 0 <= x < grid.width and 0 <= y < grid.height:
                neighbours.append(GridPosition(x=x, y=y))
    if not neighbours:
        return anchor.model_copy()

    def rank(p: GridPosition) -> tuple[int, int]:
        occupied = 0 if grid.cells[p.y][p.x].type in ("empty", "player") else 1
        return occupied, abs(p.x - start.x) + abs(p.y - start.y)

    return min(neighbours, key=rank)


def _nearest_wall(grid: RoomGridMap, start: GridPosition) -> GridPosition:
    distances = {
        "left": start.x,
        "right": grid.width - 1 - start.x,
        "top": start.y,
        "bottom": grid.height - 1 - start.y,
    }
    side = min(distances, key=distances.get)
    if side == "left":
        return GridPosition(x=0, y=start.y)
    if side == "right":
        return GridPosition(x=grid.width - 1, y=start.y)
    if side == "top":
        return GridPosition(x=start.x, y=0)
    return GridPosition(x=start.x, y=grid.height - 1)


def _random_walk(start: GridPosition, rng: random.Random) -> GridPosition:
    return GridPosition(
        x=start.x + rng.randint(-RANDOM_WALK_STEP, RANDOM_WALK_STEP),
        y=start.y + rng.randint(-RANDOM_WALK_STEP, RANDOM_WALK_STEP),
    )


def move_player_on_grid(
    grid: RoomGridMap,
    player_name: str,
    target: MoveTarget,
    rng: random.Random | None = None,
) -> RoomGridMap:
    """Resolve a named player's new position. The result is always in bounds."""
    rng = rng or random.Random()
    index = next(
        (i for i, p in enumerate(grid.player_positions)
         if p.character_name.lower() == player_name.lower()),
        None,
    )
    if index is None:
        known = ", ".join(p.character_name for p in grid.player_positions) or "none"
        raise GridError(f"Player {player_name!r} not found on grid (known players: {known})")

    start = grid.player_positions[index].position

    if target.type == "npc":
        destination = _next_to(grid, grid.npc_position, start)
    elif target.type == "equipment":
        entry = next(
            (e for e in grid.equipment_positions
             if target.equipment_name and e.equipment_name.lower() == target.equipment_name.lower()),
            None,
        )
        if entry is None:
            logger.warning(
                "Equipment %r not on grid; %s wanders instead", target.equipment_name, player_name,
            )
            destination = _random_walk(start, rng)
        else:
            destination = _next_to(grid, entry.position, start)
    elif target.type == "wall":
        destination = _nearest_wall(grid, start)
    elif target.type == "coordinate" and target.position is not None:
        destination = target.position
    else:
        destination = _random_walk(start, rng)

    clamped = GridPosition(
        x=_clamp(destination.x, grid.width),
        y=_clamp(destination.y, grid.height),
    )
    new_grid = _copy(grid)
    new_grid.player_positions[index] = PlayerPosition(
        character_name=grid.player_positions[index].character_name,
        position=clamped,
    )
    return new_grid
