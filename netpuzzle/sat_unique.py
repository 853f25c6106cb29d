"""PySAT を使った一意解チェックモジュール

制約伝播ソルバーの判定を別の方法で確かめるために使う。各マスの向きを
ブール変数で表し、辺の両側のリンクが一致する条件を CNF にする。
ループと非連結は CNF に直接書きにくいので、解が見つかるたびに
その解に含まれるループや孤立した領域を禁止する節を追加していく。
"""

from __future__ import annotations

from collections import deque
from typing import Dict, List, Optional, Tuple

import numpy as np
from pysat.card import CardEnc, EncType
from pysat.formula import CNF, IDPool
from pysat.solvers import Minisat22

from .disjoint_set import DisjointSetForest
from .edge_grid import EdgeGrid
from .grid import GridGeometry, Position, Transform
from .puzzle_types import Direction, orientations_of

# (端点 A, 端点 B, 辺の変数)
_EdgeEntry = Tuple[Position, Position, int]


def _edge_var(pool: IDPool, index: tuple[int, int, int]) -> int:
    y, x, k = index
    return pool.id(f"e_{y}_{x}_{k}")


def _build_cnf(
    board: np.ndarray, geometry: GridGeometry, pool: IDPool
) -> tuple[CNF, Dict[Position, List[Tuple[int, int]]], List[_EdgeEntry]]:
    """向き変数と辺変数を作り、基本の制約を CNF にまとめる

    :return: ``(CNF, マスごとの (変数, 向き) 一覧, 辺の一覧)``
    """

    cnf = CNF()
    # 辺の添字計算だけに使う
    index_grid = EdgeGrid(geometry.width, geometry.height, geometry.is_wrapping)
    orientation_vars: Dict[Position, List[Tuple[int, int]]] = {}

    for pos in geometry.positions():
        mask = int(board[pos.y, pos.x])
        entries = [
            (pool.id(f"o_{pos.x}_{pos.y}_{k}"), orientation)
            for k, orientation in enumerate(orientations_of(mask))
        ]
        orientation_vars[pos] = entries
        lits = [var for var, _ in entries]

        # 向きはちょうど 1 つ
        if len(lits) == 1:
            cnf.append([lits[0]])
        else:
            cnf.extend(
                CardEnc.equals(lits, 1, vpool=pool, encoding=EncType.seqcounter).clauses
            )

        for d in Direction:
            linking = [var for var, o in entries if o & (1 << d)]
            not_linking = [var for var, o in entries if not o & (1 << d)]
            if geometry.soft_wrap(pos + d) is None:
                # 盤面の外へ向かう向きは選べない
                for var in linking:
                    cnf.append([-var])
                continue
            # 辺が開いている ⇔ このマスがその方向へリンクしている
            edge = _edge_var(pool, index_grid.index_of(Transform(pos, d)))
            for var in linking:
                cnf.append([-var, edge])
            for var in not_linking:
                cnf.append([-var, -edge])

    edges: List[_EdgeEntry] = []
    for pos in geometry.positions():
        for d in (Direction.RIGHT, Direction.DOWN):
            target = geometry.soft_wrap(pos + d)
            if target is None:
                continue
            var = _edge_var(pool, index_grid.index_of(Transform(pos, d)))
            edges.append((pos, target, var))
    return cnf, orientation_vars, edges


def _forest_path(
    adjacency: Dict[Position, List[Tuple[Position, int]]], start: Position, goal: Position
) -> List[int]:
    """森の中で start から goal までの辺変数を幅優先で求める"""
    if start == goal:
        return []
    prev: Dict[Position, Tuple[Position, int]] = {}
    queue = deque([start])
    seen = {start}
    while queue:
        node = queue.popleft()
        for nxt, var in adjacency.get(node, []):
            if nxt in seen:
                continue
            seen.add(nxt)
            prev[nxt] = (node, var)
            if nxt == goal:
                path = []
                while nxt != start:
                    nxt, var = prev[nxt]
                    path.append(var)
                return path
            queue.append(nxt)
    return []


def _find_cycle(open_edges: List[_EdgeEntry]) -> Optional[List[int]]:
    """開いた辺の中からループを 1 つ探し、その辺変数を返す"""
    dsu = DisjointSetForest()
    adjacency: Dict[Position, List[Tuple[Position, int]]] = {}
    for a, b, var in open_edges:
        if dsu.connected(a, b):
            return _forest_path(adjacency, a, b) + [var]
        dsu.merge(a, b)
        adjacency.setdefault(a, []).append((b, var))
        adjacency.setdefault(b, []).append((a, var))
    return None


def _find_cut(
    linked: List[Position], open_edges: List[_EdgeEntry], edges: List[_EdgeEntry]
) -> Optional[List[int]]:
    """リンクを持つマスが非連結なら、ある連結成分の境界の辺変数を返す"""
    if not linked:
        return None
    dsu = DisjointSetForest()
    for a, b, _ in open_edges:
        dsu.merge(a, b)
    root = dsu.find_root(linked[0])
    if all(dsu.find_root(p) == root for p in linked):
        return None
    return [var for a, b, var in edges if dsu.connected(a, root) != dsu.connected(b, root)]


def count_solutions(
    board: np.ndarray, is_wrapping: bool = False, *, limit: int = 2
) -> int:
    """回転だけで作れる、連結でループのない配置の数を数える

    :param board: ``(height, width)`` のリンク配列
    :param limit: この数に達したら数えるのをやめる
    """

    height, width = board.shape
    geometry = GridGeometry(width, height, is_wrapping)
    pool = IDPool()
    cnf, orientation_vars, edges = _build_cnf(board, geometry, pool)
    linked = [pos for pos in geometry.positions() if board[pos.y, pos.x]]

    solutions = 0
    with Minisat22(bootstrap_with=cnf.clauses) as solver:
        while solutions < limit and solver.solve():
            model = {lit for lit in solver.get_model() if lit > 0}
            open_edges = [entry for entry in edges if entry[2] in model]

            cycle = _find_cycle(open_edges)
            if cycle is not None:
                # このループを作る辺の組み合わせを禁止する
                solver.add_clause([-var for var in cycle])
                continue

            cut = _find_cut(linked, open_edges, edges)
            if cut is not None:
                # 孤立した成分から外へ少なくとも 1 本は開く
                if not cut:
                    break
                solver.add_clause(cut)
                continue

            solutions += 1
            # 見つかった向きの組み合わせを禁止して次の解を探す
            chosen = [
                var
                for entries in orientation_vars.values()
                for var, _ in entries
                if var in model
            ]
            solver.add_clause([-var for var in chosen])
    return solutions


def is_unique(board: np.ndarray, is_wrapping: bool = False) -> bool:
    """与えられた配置の解が 1 つだけか確認する"""
    return count_solutions(board, is_wrapping, limit=2) == 1


__all__ = ["count_solutions", "is_unique"]
