from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))
from netpuzzle.grid import GridGeometry, Position, Transform  # noqa: E402
from netpuzzle.puzzle_types import (  # noqa: E402
    Direction,
    GameDescription,
    Links,
    link_count,
    orientations_of,
    rotate_mask_anticlockwise,
    rotate_mask_clockwise,
)


def test_four_rotations_are_identity() -> None:
    for mask in range(16):
        rotated = mask
        for _ in range(4):
            rotated = rotate_mask_clockwise(rotated)
        assert rotated == mask
        assert rotate_mask_anticlockwise(rotate_mask_clockwise(mask)) == mask


def test_rotation_keeps_link_count() -> None:
    for mask in range(16):
        assert link_count(rotate_mask_clockwise(mask)) == link_count(mask)
        assert link_count(rotate_mask_anticlockwise(mask)) == link_count(mask)


def test_clockwise_rotation_matches_direction() -> None:
    for d in Direction:
        assert Links.of(d).clockwised() == Links.of(d.clockwise())
        assert Links.of(d).anticlockwised() == Links.of(d.anticlockwise())
        assert d.rotated(1) == d.clockwise()
        assert d.opposite().opposite() == d
    assert Direction.RIGHT.clockwise() == Direction.DOWN


def test_orientations_of_removes_duplicates() -> None:
    assert orientations_of(0) == [0]
    assert orientations_of(15) == [15]
    assert orientations_of(5) == [5, 10]
    assert orientations_of(1) == [1, 2, 4, 8]
    # 現在の向きから反時計回りに並ぶ
    assert orientations_of(3) == [3, 6, 12, 9]


def test_links_helpers() -> None:
    links = Links.of(Direction.RIGHT, Direction.UP)
    assert links.inner == 3
    assert links.is_linked_to(Direction.UP)
    assert not links.is_linked_to(Direction.LEFT)
    assert links.with_link(Direction.LEFT).link_count() == 3
    assert links.without_link(Direction.UP) == Links.of(Direction.RIGHT)
    assert not Links().is_linked()


def test_shape_labels() -> None:
    assert Links(1).shape() == "P"
    assert Links(5).shape() == "I"
    assert Links(10).shape() == "I"
    assert Links(3).shape() == "L"
    assert Links(7).shape() == "T"
    assert Links(15).shape() == "+"


def test_transform_edge_normalized() -> None:
    right = Transform.at(1, 2, Direction.RIGHT)
    assert right.edge_normalized() == Transform.at(2, 2, Direction.LEFT)
    assert ~right == Transform.at(2, 2, Direction.LEFT)
    down = Transform.at(0, 0, Direction.DOWN)
    assert down.edge_normalized() == Transform.at(0, 1, Direction.UP)
    up = Transform.at(3, 3, Direction.UP)
    assert up.edge_normalized() is up


def test_geometry_wrap() -> None:
    geometry = GridGeometry(3, 2)
    assert geometry.center == Position(1, 1)
    assert geometry.soft_wrap(Position(-1, 0)) is None
    wrapping = GridGeometry(3, 2, is_wrapping=True)
    assert wrapping.soft_wrap(Position(-1, 0)) == Position(2, 0)
    assert wrapping.soft_wrap(Position(1, 2)) == Position(1, 0)
    assert len(list(geometry.positions())) == 6


def test_description_rejects_bad_size() -> None:
    with pytest.raises(ValueError):
        GameDescription(seed=0, width=0, height=3)
    with pytest.raises(ValueError):
        GameDescription(seed=0, width=3, height=-1)
