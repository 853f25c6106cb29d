from pathlib import Path
import random
import sys

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))
from netpuzzle import perturb  # noqa: E402
from netpuzzle.grid import GridGeometry, Position  # noqa: E402
from netpuzzle.puzzle_types import Direction  # noqa: E402
from netpuzzle.solver import solve_layout  # noqa: E402
from netpuzzle.validator import validate_layout  # noqa: E402


def test_perturb_without_site_is_noop() -> None:
    geometry = GridGeometry(1, 1)
    board = np.zeros((1, 1), dtype=np.uint8)
    solved_map = np.zeros((1, 1), dtype=bool)
    count = perturb.perturb(
        Position(0, 0), Direction.LEFT, board, solved_map, geometry, random.Random(0)
    )
    assert count == 0
    assert board.tolist() == [[0]]
    assert not solved_map.any()


def test_perturb_whole_board_unsolved_is_noop() -> None:
    geometry = GridGeometry(3, 3)
    board = np.array([[9, 5, 12], [10, 0, 10], [3, 4, 2]], dtype=np.uint8)
    before = board.copy()
    solved_map = np.zeros((3, 3), dtype=bool)
    count = perturb.perturb(
        Position(0, 0), Direction.LEFT, board, solved_map, geometry, random.Random(1)
    )
    # 外周がすべて盤面の外なのでリンクを足せない
    assert count == 0
    assert np.array_equal(board, before)


def test_perturb_adds_link_and_breaks_loop() -> None:
    geometry = GridGeometry(2, 2)
    board = np.array([[9, 12], [2, 2]], dtype=np.uint8)
    solved_map = np.array([[True, False], [True, False]])
    count = perturb.perturb(
        Position(1, 0), Direction.LEFT, board, solved_map, geometry, random.Random(0)
    )
    assert count == 2
    assert solved_map.all()
    # 追加したリンクは残り、ループ上の別のリンクが外れている
    assert board[1, 1] & (1 << Direction.LEFT)
    validate_layout(board)


def test_enforce_uniqueness_keeps_solved_board() -> None:
    geometry = GridGeometry(2, 2)
    board = np.array([[3, 6], [8, 4]], dtype=np.uint8)
    stats: dict = {}
    assert perturb.enforce_uniqueness(board, geometry, random.Random(0), stats=stats)
    # 解けた場合は正解の向きで置き換える
    assert board.tolist() == [[9, 12], [2, 2]]
    assert stats["perturb_passes"] == 1


def test_enforce_uniqueness_result_is_solvable() -> None:
    from netpuzzle.maze_builder import build_spanning_tree

    for seed in range(5):
        geometry = GridGeometry(6, 6)
        rng = random.Random(seed)
        board = build_spanning_tree(geometry, rng)
        if np.count_nonzero(board) < geometry.area:
            continue
        if perturb.enforce_uniqueness(board, geometry, rng):
            validate_layout(board)
            solved, solution = solve_layout(board)
            assert solved
            assert solution == board.tolist()
