"""座標と辺の向き、トーラス盤面での折り返し計算をまとめたモジュール"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from .puzzle_types import Direction, GameDescription


@dataclass(frozen=True, order=True)
class Position:
    """盤面上のマス座標。x, y の順で比較される"""

    x: int
    y: int

    def __add__(self, direction: Direction) -> Position:
        # 折り返しはしない。必要なら GridGeometry.wrap を通す
        dx, dy = direction.delta
        return Position(self.x + dx, self.y + dy)


@dataclass(frozen=True, order=True)
class Transform:
    """あるマスから見た 1 本の辺 (位置 + 方向)

    同じ辺でも両側のマスから別々の Transform で表せるため、
    辺を一意に扱いたいときは ``edge_normalized`` を使う。
    """

    pos: Position
    direction: Direction

    @classmethod
    def at(cls, x: int, y: int, direction: Direction) -> Transform:
        return cls(Position(x, y), direction)

    @property
    def x(self) -> int:
        return self.pos.x

    @property
    def y(self) -> int:
        return self.pos.y

    def __invert__(self) -> Transform:
        """辺の反対側から見た Transform を返す"""
        return Transform(self.pos + self.direction, self.direction.opposite())

    def with_direction(self, direction: Direction) -> Transform:
        return Transform(self.pos, direction)

    def edge_normalized(self) -> Transform:
        """右向き・下向きを隣のマスの左向き・上向きに揃える"""
        if self.direction == Direction.RIGHT:
            return Transform.at(self.x + 1, self.y, Direction.LEFT)
        if self.direction == Direction.DOWN:
            return Transform.at(self.x, self.y + 1, Direction.UP)
        return self

    def apply(self) -> Position:
        return self.pos + self.direction


@dataclass(frozen=True)
class GridGeometry:
    """盤面の大きさと折り返しの有無"""

    width: int
    height: int
    is_wrapping: bool = False

    @classmethod
    def from_description(cls, desc: GameDescription) -> GridGeometry:
        return cls(desc.width, desc.height, desc.is_wrapping)

    @property
    def center(self) -> Position:
        """電源となる中央のマス"""
        return Position(self.width // 2, self.height // 2)

    @property
    def area(self) -> int:
        return self.width * self.height

    def is_in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def wrap(self, pos: Position) -> Position:
        return Position(pos.x % self.width, pos.y % self.height)

    def soft_wrap(self, pos: Position) -> Optional[Position]:
        """盤面内ならそのまま、折り返し盤面なら折り返し、それ以外は None"""
        if self.is_in_bounds(pos):
            return pos
        if not self.is_wrapping:
            return None
        return self.wrap(pos)

    def positions(self) -> Iterator[Position]:
        """行優先で全マスを列挙する"""
        for y in range(self.height):
            for x in range(self.width):
                yield Position(x, y)


__all__ = ["Position", "Transform", "GridGeometry"]
