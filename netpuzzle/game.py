"""プレイ中の盤面を表す Game クラスを定義するモジュール

セルの回転・固定、通電範囲の計算、ソルバーによる自動解答をまとめて扱う。
盤面の生成そのものは ``generator`` モジュールが担当する。
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional

import numpy as np

from .bitboard import _flood_power
from .edge_grid import EdgeGrid, EdgeState
from .grid import GridGeometry, Transform
from .puzzle_types import Cell, Direction, GameDescription, Links
from .solver import solution_to_layout, solve_layout

logger = logging.getLogger(__name__)


class Game:
    """1 つのゲーム盤面

    :param desc: 盤面生成のパラメータ
    :param cells: ``cells[y][x]`` でアクセスするセルの 2 次元リスト
    :param walls: 壁の状態。省略すると全辺 OPEN
    """

    def __init__(
        self,
        desc: GameDescription,
        cells: List[List[Cell]],
        walls: Optional[EdgeGrid] = None,
    ) -> None:
        if len(cells) != desc.height or any(len(row) != desc.width for row in cells):
            raise ValueError("セル配列の大きさが盤面サイズと一致しません")
        self.desc = desc
        self.cells = cells
        if walls is None:
            walls = EdgeGrid(desc.width, desc.height, desc.is_wrapping, EdgeState.OPEN)
        self.walls = walls

    @classmethod
    def from_layout(
        cls, desc: GameDescription, layout: np.ndarray, walls: Optional[EdgeGrid] = None
    ) -> Game:
        """リンク配列から固定なしのゲームを作る"""
        if layout.shape != (desc.height, desc.width):
            raise ValueError("リンク配列の形が盤面サイズと一致しません")
        cells = [
            [Cell(Links(int(layout[y, x]))) for x in range(desc.width)]
            for y in range(desc.height)
        ]
        return cls(desc, cells, walls)

    @property
    def width(self) -> int:
        return self.desc.width

    @property
    def height(self) -> int:
        return self.desc.height

    @property
    def geometry(self) -> GridGeometry:
        return GridGeometry.from_description(self.desc)

    def _cell_at(self, x: int, y: int) -> Cell:
        # プレイヤーの座標は折り返さない
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"座標 ({x}, {y}) が盤面の外です")
        return self.cells[y][x]

    def cell(self, x: int, y: int) -> Cell:
        return self._cell_at(x, y)

    def layout(self) -> np.ndarray:
        """現在の向きを ``(height, width)`` の ``uint8`` 配列で返す"""
        return np.array(
            [[cell.links.inner for cell in row] for row in self.cells], dtype=np.uint8
        )

    def rotate_clockwise(self, x: int, y: int) -> bool:
        """セルを時計回りに回す。固定されていれば何もせず False"""
        cell = self._cell_at(x, y)
        if cell.locked:
            return False
        cell.links = cell.links.clockwised()
        return True

    def rotate_anticlockwise(self, x: int, y: int) -> bool:
        """セルを反時計回りに回す。固定されていれば何もせず False"""
        cell = self._cell_at(x, y)
        if cell.locked:
            return False
        cell.links = cell.links.anticlockwised()
        return True

    def toggle_lock(self, x: int, y: int) -> None:
        cell = self._cell_at(x, y)
        cell.locked = not cell.locked

    def compute_active(self) -> int:
        """中央のマスから電気を流し、通電したマスの数を返す

        各セルの ``powered`` を上書きする。何度呼んでも結果は変わらない。
        """

        center = self.geometry.center
        power = _flood_power(
            self.layout(), self.walls.states, self.desc.is_wrapping, center.x, center.y
        )
        for y, row in enumerate(self.cells):
            for x, cell in enumerate(row):
                cell.powered = bool(power[y, x])
        return int(np.count_nonzero(power))

    def check_if_solved(self) -> bool:
        return self.compute_active() == self.width * self.height

    def solve(self) -> bool:
        """ソルバーの解で盤面を置き換え、全セルを固定・通電状態にする

        解けなければ盤面は変えずに False を返す。
        """

        solved, solution = solve_layout(self.layout(), self.desc.is_wrapping)
        if not solved:
            logger.info("盤面を解けませんでした")
            return False
        self.cells = [
            [Cell(Links(int(mask)), locked=True, powered=True) for mask in row]
            for row in solution_to_layout(solution)
        ]
        return True

    def randomize_rotations(self, rng: random.Random) -> None:
        """各セルを 0 から 3 回時計回りに回してから通電範囲を計算し直す"""
        for row in self.cells:
            for cell in row:
                for _ in range(rng.randrange(4)):
                    cell.links = cell.links.clockwised()
        self.compute_active()

    def compute_mis_links(self) -> int:
        """表示用に誤ったリンクを ``mis_links`` へ記録し、その本数を返す

        盤面の外や閉じた壁へ向かうリンク、固定された隣のマスが
        向き合っていないリンクを誤りとみなす。
        """

        geometry = self.geometry
        total = 0
        for pos in geometry.positions():
            cell = self.cells[pos.y][pos.x]
            wrong = Links()
            for d in Direction:
                if not cell.links.is_linked_to(d):
                    continue
                target = geometry.soft_wrap(pos + d)
                if target is None or self.walls[Transform(pos, d)] == EdgeState.CLOSED:
                    wrong = wrong.with_link(d)
                    continue
                other = self.cells[target.y][target.x]
                if other.locked and not other.links.is_linked_to(d.opposite()):
                    wrong = wrong.with_link(d)
            cell.mis_links = wrong
            total += wrong.link_count()
        return total

    def clone(self) -> Game:
        """セルと壁を複製した独立したゲームを返す"""
        cells = [[cell.clone() for cell in row] for row in self.cells]
        return Game(self.desc, cells, self.walls.clone())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Game):
            return NotImplemented
        return (
            self.desc == other.desc
            and self.cells == other.cells
            and self.walls == other.walls
        )


__all__ = ["Game"]
