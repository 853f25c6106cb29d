"""辺ごとの状態 (不明 / 開 / 閉) を保持するモジュール"""

from __future__ import annotations

from enum import IntEnum
from typing import List

import numpy as np

from .grid import Transform
from .puzzle_types import Direction


class EdgeState(IntEnum):
    """辺の状態。ソルバーは UNKNOWN を使い、完成した盤面は OPEN か CLOSED のみ"""

    UNKNOWN = 0
    OPEN = 1
    CLOSED = 2


class EdgeGrid:
    """すべての辺の状態を保持するクラス

    内部配列は ``(行, 列, 2)`` の形で、最後の軸の 0 がマスの左辺、
    1 が上辺を表す。折り返しなしの盤面では外周の分だけ 1 行 1 列多く持ち、
    折り返し盤面では外周の辺が反対側の辺と同じ要素を指す。
    """

    def __init__(
        self,
        width: int,
        height: int,
        is_wrapping: bool,
        default: EdgeState = EdgeState.UNKNOWN,
        *,
        states: np.ndarray | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.is_wrapping = is_wrapping
        rows = height if is_wrapping else height + 1
        cols = width if is_wrapping else width + 1
        if states is None:
            states = np.full((rows, cols, 2), int(default), dtype=np.int8)
        elif states.shape != (rows, cols, 2):
            raise ValueError("辺配列の形が盤面サイズと一致しません")
        self.states = states

    def index_of(self, trf: Transform) -> tuple[int, int, int]:
        trf = trf.edge_normalized()
        x, y = trf.x, trf.y
        if self.is_wrapping:
            x %= self.width
            y %= self.height
        return y, x, 0 if trf.direction == Direction.LEFT else 1

    def __getitem__(self, trf: Transform) -> EdgeState:
        return EdgeState(int(self.states[self.index_of(trf)]))

    def __setitem__(self, trf: Transform, state: EdgeState) -> None:
        self.states[self.index_of(trf)] = int(state)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EdgeGrid):
            return NotImplemented
        return (
            self.is_wrapping == other.is_wrapping
            and self.states.shape == other.states.shape
            and bool(np.array_equal(self.states, other.states))
        )

    def clone(self) -> EdgeGrid:
        return EdgeGrid(
            self.width, self.height, self.is_wrapping, states=self.states.copy()
        )

    def close_boundary(self) -> None:
        """外周の辺をすべて CLOSED にする。折り返し盤面では何もしない"""
        if self.is_wrapping:
            return
        for x in range(self.width + 1):
            self[Transform.at(x, 0, Direction.UP)] = EdgeState.CLOSED
            self[Transform.at(x, self.height, Direction.UP)] = EdgeState.CLOSED
        for y in range(self.height + 1):
            self[Transform.at(0, y, Direction.LEFT)] = EdgeState.CLOSED
            self[Transform.at(self.width, y, Direction.LEFT)] = EdgeState.CLOSED

    def to_list(self) -> List[List[List[int]]]:
        """JSON 保存用に入れ子のリストへ変換する"""
        return self.states.tolist()

    @classmethod
    def from_list(
        cls, width: int, height: int, is_wrapping: bool, data: List[List[List[int]]]
    ) -> EdgeGrid:
        states = np.array(data, dtype=np.int8)
        if states.size and (states.min() < 0 or states.max() > int(EdgeState.CLOSED)):
            raise ValueError("辺の状態に不正な値が含まれています")
        return cls(width, height, is_wrapping, states=states)


__all__ = ["EdgeState", "EdgeGrid"]
