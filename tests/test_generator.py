from pathlib import Path
import random
import sys

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))
from netpuzzle import generator  # noqa: E402
from netpuzzle import sat_unique  # noqa: E402
from netpuzzle import validator  # noqa: E402
from netpuzzle.bitboard import count_edges  # noqa: E402
from netpuzzle.grid import GridGeometry  # noqa: E402
from netpuzzle.maze_builder import build_spanning_tree  # noqa: E402
from netpuzzle.puzzle_types import GameDescription  # noqa: E402
from netpuzzle.solver import solve_layout  # noqa: E402


def test_spanning_tree_is_loop_free() -> None:
    for width, height in [(1, 1), (2, 1), (3, 3), (5, 4), (7, 7)]:
        for seed in range(5):
            geometry = GridGeometry(width, height)
            board = build_spanning_tree(geometry, random.Random(seed))
            validator.validate_layout(board)


def test_layout_covers_whole_grid() -> None:
    for width, height in [(2, 2), (4, 3), (6, 6)]:
        for seed in range(5):
            desc = GameDescription(seed=seed, width=width, height=height, is_unique=False)
            board = generator.generate_layout(desc)
            assert board.shape == (height, width)
            assert count_edges(board) == width * height - 1
            assert np.count_nonzero(board) == width * height


def test_same_seed_same_layout() -> None:
    desc = GameDescription(seed=12345, width=3, height=3, is_unique=False)
    first = generator.generate_layout(desc)
    second = generator.generate_layout(desc)
    assert np.array_equal(first, second)
    validator.validate_layout(first)
    assert count_edges(first) == 8


class _FirstPick(random.Random):
    """候補の先頭 (Transform の最小値) を常に選ぶ乱数"""

    def randrange(self, *args, **kwargs) -> int:
        return 0


def test_first_pick_layout_fixture(monkeypatch) -> None:
    # 候補の並び順や乱数の使い方が変わると配置も変わる
    expected = [[9, 13, 4], [10, 3, 4], [3, 5, 4]]
    tree = build_spanning_tree(GridGeometry(3, 3), _FirstPick())
    assert tree.tolist() == expected

    monkeypatch.setattr(generator.random, "Random", _FirstPick)
    desc = GameDescription(seed=2024, width=3, height=3, is_unique=False)
    board, stats = generator.generate_layout(desc, return_stats=True)
    assert board.tolist() == expected
    assert stats["attempts"] == 1


def test_different_seeds_vary() -> None:
    layouts = {
        generator.generate_layout(
            GameDescription(seed=seed, width=5, height=5, is_unique=False)
        ).tobytes()
        for seed in range(10)
    }
    assert len(layouts) > 1


def test_unique_layout_solves_in_one_call() -> None:
    desc = GameDescription(seed=7, width=5, height=5)
    board, stats = generator.generate_layout(desc, return_stats=True)
    assert stats["unique"]
    assert not stats["partial"]
    assert stats["attempts"] >= 1
    assert stats["difficulty"] in {"easy", "normal", "hard", "expert"}
    solved, solution = solve_layout(board)
    assert solved
    assert solution == board.tolist()
    assert sat_unique.is_unique(board)


def test_wrapping_layout_is_consistent() -> None:
    for seed in range(3):
        desc = GameDescription(
            seed=seed, width=4, height=4, is_wrapping=True, is_unique=False
        )
        board = generator.generate_layout(desc)
        validator.validate_layout(board, is_wrapping=True)
        assert count_edges(board) == 15


def test_retry_limit_fallback() -> None:
    desc = GameDescription(seed=3, width=6, height=6)
    board, stats = generator.generate_layout(desc, retry_limit=1, return_stats=True)
    assert stats["attempts"] == 1
    # 1 回で一意化できなかった場合も盤面は返す
    assert stats["partial"] == (not stats["unique"])
    validator.validate_layout(board)


def test_invalid_retry_limit() -> None:
    desc = GameDescription(seed=0, width=2, height=2)
    with pytest.raises(ValueError):
        generator.generate_layout(desc, retry_limit=0)


def test_new_game_uses_given_seed() -> None:
    game = generator.new_game(4, 4, seed=99, randomize=False)
    assert game.desc.seed == 99
    assert game.check_if_solved()
    expected = generator.generate_layout(game.desc)
    assert np.array_equal(game.layout(), expected)


def test_board_to_ascii() -> None:
    board = np.array([[9, 12], [3, 6]], dtype=np.uint8)
    assert generator.board_to_ascii(board) == "┌┐\n└┘"
    line = np.array([[1, 5, 4]], dtype=np.uint8)
    assert generator.board_to_ascii(line) == "╶─╴"


@pytest.mark.slow
def test_larger_unique_layouts() -> None:
    for seed in range(3):
        desc = GameDescription(seed=seed, width=9, height=9)
        board, stats = generator.generate_layout(desc, return_stats=True)
        validator.validate_layout(board)
        if stats["unique"]:
            solved, _ = solve_layout(board)
            assert solved


def test_retry_limit_exhausted_returns_last_tree(monkeypatch) -> None:
    monkeypatch.setattr(generator, "enforce_uniqueness", lambda *args, **kwargs: False)
    desc = GameDescription(seed=5, width=4, height=4)
    board, stats = generator.generate_layout(desc, retry_limit=3, return_stats=True)
    assert stats["attempts"] == 3
    assert stats["partial"]
    assert not stats["unique"]
    assert "difficulty" not in stats
    validator.validate_layout(board)
