from pathlib import Path
import random
import sys

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))
from netpuzzle import generator  # noqa: E402
from netpuzzle.edge_grid import EdgeState  # noqa: E402
from netpuzzle.game import Game  # noqa: E402
from netpuzzle.grid import Transform  # noqa: E402
from netpuzzle.puzzle_types import Direction, GameDescription, Links  # noqa: E402


def _fresh_game(seed: int = 0, size: int = 5, **kwargs) -> Game:
    desc = GameDescription(seed=seed, width=size, height=size, **kwargs)
    return generator.generate_game(desc)


def test_fresh_game_is_fully_powered() -> None:
    game = _fresh_game(is_unique=False)
    assert game.compute_active() == 25
    assert game.check_if_solved()
    assert all(cell.powered for row in game.cells for cell in row)
    assert not any(cell.locked for row in game.cells for cell in row)


def test_wrapping_game_is_fully_powered() -> None:
    game = _fresh_game(seed=4, size=4, is_wrapping=True, is_unique=False)
    assert game.compute_active() == 16


def test_compute_active_is_idempotent() -> None:
    game = _fresh_game(seed=2)
    game.randomize_rotations(random.Random(5))
    first = game.compute_active()
    powered = [[cell.powered for cell in row] for row in game.cells]
    assert game.compute_active() == first
    assert [[cell.powered for cell in row] for row in game.cells] == powered


def test_rotating_leaf_cuts_power() -> None:
    game = _fresh_game(seed=3, is_unique=False)
    center = game.geometry.center
    leaf = next(
        (x, y)
        for y, row in enumerate(game.cells)
        for x, cell in enumerate(row)
        if cell.links.link_count() == 1 and (x, y) != (center.x, center.y)
    )
    assert game.rotate_clockwise(*leaf)
    assert game.compute_active() == 24
    assert not game.cell(*leaf).powered
    assert game.rotate_anticlockwise(*leaf)
    assert game.compute_active() == 25


def test_locked_cell_cannot_rotate() -> None:
    game = _fresh_game(seed=1)
    before = game.cell(0, 0).links
    game.toggle_lock(0, 0)
    assert not game.rotate_clockwise(0, 0)
    assert not game.rotate_anticlockwise(0, 0)
    assert game.cell(0, 0).links == before
    game.toggle_lock(0, 0)
    assert game.rotate_clockwise(0, 0)


def test_out_of_range_coordinates() -> None:
    game = _fresh_game(seed=1, size=3)
    with pytest.raises(ValueError):
        game.rotate_clockwise(3, 0)
    with pytest.raises(ValueError):
        game.rotate_anticlockwise(0, -1)
    with pytest.raises(ValueError):
        game.toggle_lock(-1, 2)


def test_solve_locks_and_powers_everything() -> None:
    desc = GameDescription(seed=11, width=5, height=5)
    game = generator.generate_game(desc, randomize=True, rng=random.Random(8))
    expected = generator.generate_layout(desc)
    assert game.solve()
    assert all(cell.locked and cell.powered for row in game.cells for cell in row)
    assert np.array_equal(game.layout(), expected)
    assert game.check_if_solved()


def test_solve_unsolvable_leaves_board() -> None:
    desc = GameDescription(seed=0, width=2, height=2, is_unique=False)
    game = Game.from_layout(desc, np.array([[9, 12], [3, 6]], dtype=np.uint8))
    before = game.clone()
    assert not game.solve()
    assert game == before


def test_clone_is_independent() -> None:
    game = _fresh_game(seed=6)
    copy = game.clone()
    assert copy == game
    copy.rotate_clockwise(0, 0)
    copy.walls[Transform.at(0, 0, Direction.RIGHT)] = EdgeState.CLOSED
    assert copy != game
    assert game.walls[Transform.at(0, 0, Direction.RIGHT)] == EdgeState.OPEN


def test_closed_wall_blocks_power() -> None:
    desc = GameDescription(seed=0, width=2, height=1, is_unique=False)
    game = Game.from_layout(desc, np.array([[1, 4]], dtype=np.uint8))
    assert game.compute_active() == 2
    game.walls[Transform.at(0, 0, Direction.RIGHT)] = EdgeState.CLOSED
    assert game.compute_active() == 1
    # 電源は中央 (1, 0) のマス
    assert game.cell(1, 0).powered
    assert not game.cell(0, 0).powered


def test_mis_links() -> None:
    desc = GameDescription(seed=0, width=2, height=1, is_unique=False)
    game = Game.from_layout(desc, np.array([[2, 4]], dtype=np.uint8))
    game.toggle_lock(1, 0)
    assert game.compute_mis_links() == 1
    # 上は盤面の外
    assert game.cell(0, 0).mis_links == Links.of(Direction.UP)
    assert game.cell(1, 0).mis_links == Links()


def test_layout_shape_mismatch() -> None:
    desc = GameDescription(seed=0, width=2, height=2)
    with pytest.raises(ValueError):
        Game.from_layout(desc, np.zeros((3, 2), dtype=np.uint8))


def test_solve_small_layout_adopts_solution() -> None:
    desc = GameDescription(seed=0, width=2, height=2)
    game = Game.from_layout(desc, np.array([[3, 6], [8, 4]], dtype=np.uint8))
    assert game.solve()
    assert game.layout().tolist() == [[9, 12], [2, 2]]
    assert all(type(cell.links.inner) is int for row in game.cells for cell in row)
