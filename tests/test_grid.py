"""Tests for dungeon_dj.grid: placement, removal and player movement."""

import random

import pytest

from dungeon_dj.grid import (
    GRID_SIZE,
    GridError,
    MoveTarget,
    add_player_to_room_grid,
    generate_all_room_grids,
    generate_room_grid,
    initialize_player_positions,
    is_position_valid,
    move_npc_on_grid,
    move_player_on_grid,
    remove_equipment_from_grid,
    spawn_candidates,
)
from dungeon_dj.models import GridPosition, Npc, Room


def _room(equipments: list[str] | None = None) -> Room:
    return Room(
        npc=Npc(npc_name="Grimble", disposition="neutral", damage=1),
        room_description="A cellar.",
        equipments=equipments if equipments is not None else ["Rope", "Lantern"],
    )


def _occupied(grid) -> list[tuple[int, int]]:
    return [
        (x, y)
        for y, row in enumerate(grid.cells)
        for x, cell in enumerate(row)
        if cell.type != "empty"
    ]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

class TestGenerateRoomGrid:
    def test_dimensions(self) -> None:
        grid = generate_room_grid(_room())
        assert grid.width == grid.height == GRID_SIZE
        assert len(grid.cells) == GRID_SIZE
        assert all(len(row) == GRID_SIZE for row in grid.cells)

    def test_spawn_is_a_wall_midpoint(self) -> None:
        grid = generate_room_grid(_room())
        assert grid.player_spawn_position in spawn_candidates()

    def test_placements_never_collide(self) -> None:
        rng = random.Random(7)
        for _ in range(50):
            grid = generate_room_grid(_room(["A", "B", "C", "D", "E"]), rng)
            occupied = _occupied(grid)
            assert len(occupied) == 6
            spawn = grid.player_spawn_position
            assert (spawn.x, spawn.y) not in occupied

    def test_cells_match_positions(self) -> None:
        grid = generate_room_grid(_room())
        npc = grid.npc_position
        assert grid.cells[npc.y][npc.x].npc_name == "Grimble"
        for entry in grid.equipment_positions:
            cell = grid.cells[entry.position.y][entry.position.x]
            assert cell.type == "equipment"
            assert cell.equipment_name == entry.equipment_name

    def test_room_without_equipment(self) -> None:
        grid = generate_room_grid(_room([]))
        assert grid.equipment_positions == []
        assert len(_occupied(grid)) == 1

    def test_exhaustion_raises(self) -> None:
        room = _room([f"item {i}" for i in range(GRID_SIZE * GRID_SIZE)])
        with pytest.raises(GridError, match="after 100 attempts"):
            generate_room_grid(room)

    def test_generate_all_keeps_order(self) -> None:
        rooms = generate_all_room_grids([_room(["A"]), _room([])])
        assert [len(r.equipments) for r in rooms] == [1, 0]
        assert all(r.grid_map is not None for r in rooms)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------

class TestTransforms:
    def test_remove_equipment(self) -> None:
        grid = generate_room_grid(_room())
        position = grid.equipment_positions[0].position
        updated = remove_equipment_from_grid(grid, "Rope")
        assert updated.cells[position.y][position.x].type == "empty"
        assert [e.equipment_name for e in updated.equipment_positions] == ["Lantern"]
        # input untouched
        assert grid.cells[position.y][position.x].type == "equipment"

    def test_remove_unknown_equipment_is_noop(self) -> None:
        grid = generate_room_grid(_room())
        assert remove_equipment_from_grid(grid, "Sword") == grid

    def test_remove_is_idempotent(self) -> None:
        grid = generate_room_grid(_room())
        once = remove_equipment_from_grid(grid, "Rope")
        assert remove_equipment_from_grid(once, "Rope") == once

    def test_remove_one_of_duplicates(self) -> None:
        grid = generate_room_grid(_room(["Torch", "Torch"]))
        updated = remove_equipment_from_grid(grid, "Torch")
        equipment_cells = [
            cell for row in updated.cells for cell in row if cell.type == "equipment"
        ]
        assert len(equipment_cells) == len(updated.equipment_positions) == 1
        remaining = updated.equipment_positions[0].position
        assert updated.cells[remaining.y][remaining.x].equipment_name == "Torch"

    def test_add_player_marks_spawn(self) -> None:
        grid = generate_room_grid(_room())
        updated = add_player_to_room_grid(grid, "p1")
        spawn = grid.player_spawn_position
        assert updated.cells[spawn.y][spawn.x].player_id == "p1"
        assert grid.cells[spawn.y][spawn.x].type == "empty"

    def test_move_npc(self) -> None:
        grid = generate_room_grid(_room([]))
        target = next(
            GridPosition(x=x, y=y)
            for y in range(GRID_SIZE) for x in range(GRID_SIZE)
            if is_position_valid(grid, GridPosition(x=x, y=y))
        )
        old = grid.npc_position
        updated = move_npc_on_grid(grid, target)
        assert updated.npc_position == target
        assert updated.cells[target.y][target.x].npc_name == "Grimble"
        assert updated.cells[old.y][old.x].type == "empty"

    @pytest.mark.parametrize("x, y", [(-1, -1), (GRID_SIZE, 0), (0, GRID_SIZE)])
    def test_move_npc_out_of_bounds(self, x: int, y: int) -> None:
        grid = generate_room_grid(_room([]))
        with pytest.raises(GridError, match="out of bounds"):
            move_npc_on_grid(grid, GridPosition(x=x, y=y))

    def test_move_npc_onto_equipment(self) -> None:
        grid = generate_room_grid(_room(["Rope"]))
        item = grid.equipment_positions[0].position
        with pytest.raises(GridError, match="occupied"):
            move_npc_on_grid(grid, item)

    def test_move_npc_in_place(self) -> None:
        grid = generate_room_grid(_room([]))
        assert move_npc_on_grid(grid, grid.npc_position) == grid

    def test_is_position_valid(self) -> None:
        grid = generate_room_grid(_room())
        assert not is_position_valid(grid, GridPosition(x=-1, y=0))
        assert not is_position_valid(grid, GridPosition(x=0, y=GRID_SIZE))
        assert not is_position_valid(grid, grid.npc_position)


# ---------------------------------------------------------------------------
# Player movement
# ---------------------------------------------------------------------------

class TestMovePlayer:
    @pytest.fixture
    def grid(self):
        grid = generate_room_grid(_room(), random.Random(3))
        return initialize_player_positions(grid, ["Aria", "Borin"])

    def test_initialize_places_everyone_on_spawn(self, grid) -> None:
        assert [p.character_name for p in grid.player_positions] == ["Aria", "Borin"]
        assert all(p.position == grid.player_spawn_position for p in grid.player_positions)

    def test_unknown_player_raises(self, grid) -> None:
        with pytest.raises(GridError, match="known players: Aria, Borin"):
            move_player_on_grid(grid, "Zed", MoveTarget(type="wall"))

    def test_lookup_is_case_insensitive(self, grid) -> None:
        updated = move_player_on_grid(grid, "aria", MoveTarget(type="wall"))
        assert updated.player_positions[0].character_name == "Aria"

    def test_move_next_to_npc(self, grid) -> None:
        updated = move_player_on_grid(grid, "Aria", MoveTarget(type="npc"))
        pos = updated.player_positions[0].position
        npc = grid.npc_position
        assert max(abs(pos.x - npc.x), abs(pos.y - npc.y)) == 1

    def test_move_next_to_equipment(self, grid) -> None:
        updated = move_player_on_grid(
            grid, "Borin", MoveTarget(type="equipment", equipment_name="lantern"),
        )
        pos = updated.player_positions[1].position
        item = next(e for e in grid.equipment_positions if e.equipment_name == "Lantern").position
        assert max(abs(pos.x - item.x), abs(pos.y - item.y)) == 1

    def test_move_to_wall(self, grid) -> None:
        updated = move_player_on_grid(grid, "Aria", MoveTarget(type="wall"))
        pos = updated.player_positions[0].position
        assert pos.x in (0, GRID_SIZE - 1) or pos.y in (0, GRID_SIZE - 1)

    def test_coordinate_is_clamped(self, grid) -> None:
        target = MoveTarget(type="coordinate", position=GridPosition(x=40, y=-3))
        updated = move_player_on_grid(grid, "Aria", target)
        assert updated.player_positions[0].position == GridPosition(x=GRID_SIZE - 1, y=0)

    def test_random_walk_stays_in_bounds(self, grid) -> None:
        rng = random.Random(11)
        for _ in range(100):
            grid = move_player_on_grid(grid, "Aria", MoveTarget(type="random"), rng)
            pos = grid.player_positions[0].position
            assert 0 <= pos.x < GRID_SIZE and 0 <= pos.y < GRID_SIZE

    def test_unknown_equipment_wanders(self, grid) -> None:
        target = MoveTarget(type="equipment", equipment_name="Crown")
        updated = move_player_on_grid(grid, "Aria", target, random.Random(1))
        pos = updated.player_positions[0].position
        assert 0 <= pos.x < GRID_SIZE and 0 <= pos.y < GRID_SIZE

    def test_move_does_not_touch_cells_or_input(self, grid) -> None:
        updated = move_player_on_grid(grid, "Aria", MoveTarget(type="wall"))
        assert updated.cells == grid.cells
        assert grid.player_positions[0].position == grid.player_spawn_position
