# 回転パズル用の制約伝播ソルバーモジュール

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, Hashable, List, Optional, Set

import numpy as np

from .disjoint_set import DisjointSetForest
from .edge_grid import EdgeGrid, EdgeState
from .grid import GridGeometry, Transform
from .puzzle_types import Direction, orientations_of

logger = logging.getLogger(__name__)

# 各マスの解。向きが 1 つに決まったマスはそのマスク、決まらなければ None
Solution = List[List[Optional[int]]]


def _isolates_dead_ends(total_reachable: int, area: int) -> bool:
    """行き止まりだけをつなぐ向きで盤面全体に届かないなら True (+1 は自分自身)"""
    return 0 < total_reachable and total_reachable + 1 < area


class TodoList:
    """重複を取り除く先入れ先出しの作業リスト"""

    def __init__(self) -> None:
        self._order: Deque[Hashable] = deque()
        self._members: Set[Hashable] = set()

    def __bool__(self) -> bool:
        return bool(self._order)

    def add(self, item: Hashable) -> None:
        if item in self._members:
            return
        self._members.add(item)
        self._order.append(item)

    def pop(self) -> Hashable:
        item = self._order.popleft()
        self._members.discard(item)
        return item


def solve_layout(
    board: np.ndarray,
    is_wrapping: bool = False,
    *,
    return_stats: bool = False,
) -> tuple[bool, Solution] | tuple[bool, Solution, Dict[str, int]]:
    """リンク配置の向きが一意に決まるか制約伝播で調べる

    各マスの向きの候補を、辺の開閉・ループ・行き止まりの 3 種類の推論で
    絞り込み、変化がなくなるまで繰り返す。すべてのマスの候補が 1 つに
    なれば解けたと判定する。候補がなくなったマスが出た場合は解なし。

    :param board: ``(height, width)`` のリンク配列。書き換えない
    :param is_wrapping: 折り返し盤面かどうか
    :param return_stats: True なら解析統計も返す
    :return: ``(解けたか, 各マスの解)``。``return_stats`` が True の場合は
        統計辞書を 3 番目の要素に加える

    統計には、全マスを積み直した回数 (``passes``)、調べたマスの延べ数
    (``steps``)、除外した向きの数 (``removed``) を記録する。
    """

    height, width = board.shape
    geometry = GridGeometry(width, height, is_wrapping)

    # 各マスの向きの候補。先頭は現在の向き
    candidates: List[List[List[int]]] = [
        [orientations_of(int(board[y, x])) for x in range(width)] for y in range(height)
    ]
    # リンクを持つマスの数。行き止まり判定の基準になる
    area = int(np.count_nonzero(board))
    logger.debug("リンクを持つマス: %d", area)

    # 辺の開閉の知識。折り返しなしなら外周は最初から閉じている
    edge_states = EdgeGrid(width, height, is_wrapping, EdgeState.UNKNOWN)
    edge_states.close_boundary()

    # マスの各方向の先が行き止まりだった場合に届く面積。area + 1 は「行き止まりではない」
    dead_ends = [[[area + 1] * 4 for _ in range(width)] for _ in range(height)]

    # 開いた辺でつながったマスの同値類。ループ検出に使う
    equivalence = DisjointSetForest()

    stats = {"passes": 0, "steps": 0, "removed": 0}

    def finish(result: bool) -> tuple[bool, Solution] | tuple[bool, Solution, Dict[str, int]]:
        solution: Solution = [
            [cands[0] if len(cands) == 1 else None for cands in row] for row in candidates
        ]
        solved = result and all(v is not None for row in solution for v in row)
        logger.debug("解析終了: solved=%s", solved)
        if return_stats:
            return solved, solution, stats
        return solved, solution

    todo = TodoList()
    did_something = True
    while True:
        if not todo:
            if not did_something:
                break
            did_something = False
            stats["passes"] += 1
            for pos in geometry.positions():
                todo.add(pos)
            continue

        pos = todo.pop()
        stats["steps"] += 1
        our_class = equivalence.find_root(pos)
        dead_end_max = [0, 0, 0, 0]
        survivors: List[int] = []

        for orientation in candidates[pos.y][pos.x]:
            is_valid = True
            total_reachable = 0
            non_dead_ends: List[int] = []
            linked: List[Direction] = []
            reached = [our_class]

            for d in Direction:
                state = edge_states[Transform(pos, d)]
                is_linked = bool(orientation & (1 << d))
                if (state == EdgeState.CLOSED and is_linked) or (
                    state == EdgeState.OPEN and not is_linked
                ):
                    is_valid = False
                if not is_linked:
                    continue
                linked.append(d)

                reachable = dead_ends[pos.y][pos.x][d]
                if reachable <= area:
                    total_reachable += reachable
                else:
                    non_dead_ends.append(d)

                # 開いていると分かっていない辺で既知の集合へつなぐとループになる
                if state == EdgeState.UNKNOWN:
                    other = equivalence.find_root(geometry.wrap(pos + d))
                    if other in reached:
                        is_valid = False
                    else:
                        reached.append(other)

            if not non_dead_ends and _isolates_dead_ends(total_reachable, area):
                is_valid = False

            if not is_valid:
                logger.debug("%s の向き %d を除外", pos, orientation)
                did_something = True
                stats["removed"] += 1
                continue

            survivors.append(orientation)
            # 隣のマスからこのマスを通って届く面積の上限を方向ごとに求める
            for d in linked:
                if any(other != d for other in non_dead_ends):
                    dead_end_max[d] = area + 1
                    continue
                reach = total_reachable + 1
                if d not in non_dead_ends:
                    reach -= dead_ends[pos.y][pos.x][d]
                dead_end_max[d] = max(dead_end_max[d], reach)

        candidates[pos.y][pos.x] = survivors
        if not survivors:
            logger.debug("解なし: %s の向きの候補がなくなりました", pos)
            return finish(False)

        # 辺について新しく分かったことを反映する
        for d in Direction:
            trf = Transform(pos, d)
            if edge_states[trf] != EdgeState.UNKNOWN:
                continue
            target = geometry.wrap(pos + d)
            bit = 1 << d
            if all(o & bit for o in survivors):
                edge_states[trf] = EdgeState.OPEN
                equivalence.merge(pos, target)
                logger.debug("辺 %s %s は OPEN", pos, d.name)
            elif not any(o & bit for o in survivors):
                edge_states[trf] = EdgeState.CLOSED
                logger.debug("辺 %s %s は CLOSED", pos, d.name)
            else:
                continue
            did_something = True
            todo.add(target)

        # 行き止まりについて新しく分かったことを反映する
        for d in Direction:
            value = dead_end_max[d]
            if value <= 0:
                continue
            target = geometry.soft_wrap(pos + d)
            if target is None:
                continue
            back = d.opposite()
            if dead_ends[target.y][target.x][back] > value:
                logger.debug("行き止まり %s %s の面積上限を %d に更新", target, back.name, value)
                dead_ends[target.y][target.x][back] = value
                did_something = True
                todo.add(target)

    return finish(True)


def solution_to_layout(solution: Solution) -> np.ndarray:
    """解けた結果をリンク配列へ戻す。未確定のマスがあれば ValueError"""
    if any(v is None for row in solution for v in row):
        raise ValueError("向きが確定していないマスがあります")
    return np.array(solution, dtype=np.uint8)


__all__ = ["Solution", "TodoList", "solve_layout", "solution_to_layout"]
