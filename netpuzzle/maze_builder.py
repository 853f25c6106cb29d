"""ランダムな全域木を作る迷路生成モジュール"""

from __future__ import annotations

import bisect
import logging
import random
from typing import List

import numpy as np

from .bitboard import empty_layout
from .grid import GridGeometry, Position, Transform
from .puzzle_types import Direction, link_count

logger = logging.getLogger(__name__)


class _Frontier:
    """乱数で取り出せる順序付き集合

    ハッシュ集合は列挙順が安定しないため、Transform の大小順に並べた
    リストで管理する。乱数から添字を引いて取り出すので、
    同じシードなら同じ順番で枝が伸びる。
    """

    def __init__(self) -> None:
        self._items: List[Transform] = []

    def __len__(self) -> int:
        return len(self._items)

    def add(self, trf: Transform) -> None:
        index = bisect.bisect_left(self._items, trf)
        if index < len(self._items) and self._items[index] == trf:
            return
        self._items.insert(index, trf)

    def remove(self, trf: Transform) -> bool:
        index = bisect.bisect_left(self._items, trf)
        if index < len(self._items) and self._items[index] == trf:
            del self._items[index]
            return True
        return False

    def pop_random(self, rng: random.Random) -> Transform:
        return self._items.pop(rng.randrange(len(self._items)))


def link_cells(board: np.ndarray, pos: Position, target: Position, direction: Direction) -> None:
    """2 マスを辺の両側からつなぐ"""
    board[pos.y, pos.x] |= 1 << direction
    board[target.y, target.x] |= 1 << direction.opposite()


def unlink_cells(board: np.ndarray, pos: Position, target: Position, direction: Direction) -> None:
    """2 マス間のリンクを両側から外す"""
    board[pos.y, pos.x] &= ~(1 << direction) & 0xF
    board[target.y, target.x] &= ~(1 << direction.opposite()) & 0xF


def build_spanning_tree(geometry: GridGeometry, rng: random.Random) -> np.ndarray:
    """中央のマスから枝を伸ばしてループのない配置を作る

    毎回新しい配列を確保するので、失敗した試行の状態が次に残ることはない。

    :param geometry: 盤面サイズと折り返しの有無
    :param rng: 乱数生成に利用する ``random.Random`` インスタンス
    :return: ``(height, width)`` のリンク配列
    """

    board = empty_layout(geometry.width, geometry.height)
    center = geometry.center
    frontier = _Frontier()

    # 中央から盤面内へ向かう方向を最初の候補にする
    for d in Direction:
        if geometry.is_in_bounds(center + d):
            frontier.add(Transform(center, d))

    steps = 0
    while len(frontier):
        steps += 1
        curr = frontier.pop_random(rng)
        target = geometry.wrap(curr.apply())
        link_cells(board, curr.pos, target, curr.direction)

        # T 字になったら十字にならないよう残りの候補を 1 つ捨てる
        if link_count(int(board[curr.y, curr.x])) >= 3:
            for d in Direction:
                if frontier.remove(curr.with_direction(d)):
                    break

        # 今つないだマスへ別の辺から入る候補はループになるので消す
        for d in Direction:
            frontier.remove(Transform(geometry.wrap(target + d.opposite()), d))

        # つないだマスから外側へ伸びる候補を追加する
        back = curr.direction.opposite()
        for d in Direction:
            if d == back:
                continue
            outward = geometry.soft_wrap(target + d)
            if outward is None:
                continue
            if board[outward.y, outward.x]:
                continue
            frontier.add(Transform(target, d))

    logger.debug("全域木の生成完了: %d 本の辺をつなぎました", steps)
    return board


__all__ = ["build_spanning_tree", "link_cells", "unlink_cells"]
