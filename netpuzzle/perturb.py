"""未解決の領域を局所的に組み替えて一意解へ近づけるモジュール

ソルバーが向きを確定できたマスを「解決済み」とみなし、未解決領域の外周に
新しいリンクを 1 本足して推論が領域内へ広がるようにする。リンクを足すと
必ずループができるため、そのループ上の別のリンクを 1 本外して木に戻す。
"""

from __future__ import annotations

import itertools
import logging
import random
from typing import List, Optional

import numpy as np

from .grid import GridGeometry, Position, Transform
from .maze_builder import link_cells, unlink_cells
from .puzzle_types import Direction, link_count
from .solver import solution_to_layout, solve_layout

logger = logging.getLogger(__name__)


def _trace_perimeter(
    start: Position,
    start_direction: Direction,
    solved_map: np.ndarray,
    geometry: GridGeometry,
) -> List[Transform]:
    """右手を壁につけて未解決領域の外周をたどる

    常に現在地は未解決のマスで、向いている方向の先が外周 (解決済みのマスか
    折り返しなし盤面の外) になるように進む。開始状態へ戻ったら終了する。
    折り返し盤面では開始状態へ戻らない周回に入ることがあるので、
    同じ状態を 2 度踏んだ時点で打ち切る。
    """

    def is_perimeter(pos: Optional[Position]) -> bool:
        return pos is None or bool(solved_map[pos.y, pos.x])

    perimeter: List[Transform] = []
    visited = set()
    pos, direction = start, start_direction
    while True:
        state = Transform(pos, direction)
        if state in visited:
            if state != Transform(start, start_direction):
                logger.debug("外周の追跡が開始点へ戻らないため打ち切ります")
            break
        visited.add(state)
        perimeter.append(state)

        # 左を見て外周なら左を向く
        left = direction.anticlockwise()
        target = geometry.soft_wrap(pos + left)
        if is_perimeter(target):
            direction = left
            continue

        # 左のマスへ向きを変えずに移動し、正面を見る
        pos = target
        target = geometry.soft_wrap(pos + direction)
        if is_perimeter(target):
            continue

        # 正面も未解決なら進んで右を向く
        pos = target
        direction = direction.clockwise()
    return perimeter


def _choose_link_site(
    perimeter: List[Transform], board: np.ndarray, geometry: GridGeometry
) -> tuple[Optional[Transform], bool]:
    """新しいリンクを張る辺を選ぶ

    :return: ``(辺, 十字を一時的に作るか)``。候補がなければ ``(None, False)``
    """

    subpar: Optional[Transform] = None
    for trf in perimeter:
        # 折り返しなし盤面の外へはつなげない
        target = geometry.soft_wrap(trf.apply())
        if target is None:
            continue
        mask = int(board[trf.y, trf.x])
        if mask & (1 << trf.direction):
            continue

        curr_cross = link_count(mask) >= 3
        target_cross = link_count(int(board[target.y, target.x])) >= 3
        if curr_cross and target_cross:
            continue
        if curr_cross or target_cross:
            # 十字が 1 つだけなら後でループを切るときに戻せるので最後の手段として残す
            subpar = trf
            continue
        return trf, False

    if subpar is not None:
        return subpar, True
    return None, False


def _find_loop(
    new_link: Transform, board: np.ndarray, geometry: GridGeometry
) -> Optional[List[Transform]]:
    """新しいリンクでできたループを左右 2 方向の壁伝いで同時に探す

    後戻りした区間は打ち消し、出発した区間へ戻ってきた方の経路を返す。
    """

    heads = [new_link, new_link]
    loops: List[List[Transform]] = [[], []]
    # 有向辺の数を超えて歩き続けることはない
    max_steps = 4 * geometry.area + 4
    for _ in range(max_steps):
        for i in range(2):
            curr = heads[i]
            loop = loops[i]
            target = geometry.wrap(curr.apply())
            back = curr.direction.opposite()
            if loop and loop[-1].pos == target and loop[-1].direction == back:
                loop.pop()
            else:
                loop.append(curr)

            # 引き返す方向を最後の選択肢にするため、まず後ろを向いてから回る
            target_mask = int(board[target.y, target.x])
            direction = back
            for _turn in range(4):
                direction = direction.anticlockwise() if i == 0 else direction.clockwise()
                if target_mask & (1 << direction):
                    heads[i] = Transform(target, direction)
                    break

            if loop and heads[i] == loop[0]:
                logger.debug("ループを検出: %d 本", len(loop))
                return loop
    return None


def _lock_region(
    perimeter: List[Transform], solved_map: np.ndarray, geometry: GridGeometry
) -> int:
    """外周で囲まれたマスを列ごとに解決済みにし、その数を返す"""

    count = 0
    for x, group in itertools.groupby(sorted(perimeter), key=lambda trf: trf.x):
        column = list(group)
        first_pass = True
        while column:
            top_index = next(
                (i for i, trf in enumerate(column) if trf.direction == Direction.UP), -1
            )
            bottom_index = next(
                (i for i, trf in enumerate(column) if trf.direction == Direction.DOWN), -1
            )
            if top_index == -1 or bottom_index == -1:
                if not first_pass:
                    break
                # 上下の外周がない列は列全体が領域に含まれる
                top = Position(x, 0)
                bottom = Position(x, geometry.height - 1)
                column = []
            else:
                top = Position(x, column[top_index].y)
                bottom = Position(x, column[bottom_index].y)
                column = column[max(top_index, bottom_index) + 1 :]

            while True:
                solved_map[top.y, top.x] = True
                count += 1
                if top == bottom:
                    break
                top = geometry.wrap(top + Direction.DOWN)
            first_pass = False
    return count


def perturb(
    start: Position,
    start_direction: Direction,
    board: np.ndarray,
    solved_map: np.ndarray,
    geometry: GridGeometry,
    rng: random.Random,
) -> int:
    """未解決領域の外周にリンクを足し、できたループを切って領域を解決済みにする

    :param start: 未解決のマス
    :param start_direction: ``start`` から解決済み側 (または盤面外) への方向
    :param board: リンク配列。その場で書き換える
    :param solved_map: 解決済みなら True の ``(height, width)`` 配列。その場で書き換える
    :param rng: 乱数生成に利用する ``random.Random`` インスタンス
    :return: 解決済みにしたマスの数。何もできなければ 0 で、盤面は変わらない
    """

    logger.debug("摂動開始: %s %s", start, start_direction.name)
    perimeter = _trace_perimeter(start, start_direction, solved_map, geometry)

    # 追跡した向きによる偏りをなくすため混ぜてから選ぶ
    rng.shuffle(perimeter)
    site, is_subpar = _choose_link_site(perimeter, board, geometry)
    if site is None:
        return 0

    site_target = geometry.wrap(site.apply())
    if is_subpar:
        logger.debug("十字を一時的に作ってリンクを追加: %s %s", site.pos, site.direction.name)
    else:
        logger.debug("リンクを追加: %s %s", site.pos, site.direction.name)
    link_cells(board, site.pos, site_target, site.direction)

    loop = _find_loop(site, board, geometry)
    # 先頭は今足したリンクなので外す候補から除く
    removable = loop[1:] if loop else []
    if not removable:
        logger.debug("ループが見つからないため追加したリンクを戻します")
        unlink_cells(board, site.pos, site_target, site.direction)
        return 0

    if is_subpar:
        # 十字は許されないので、十字になったマスのリンクを必ず外す
        victim = next(
            (trf for trf in removable if link_count(int(board[trf.y, trf.x])) == 4),
            removable[-1],
        )
    else:
        victim = rng.choice(removable)
    logger.debug("ループを切るためリンクを削除: %s %s", victim.pos, victim.direction.name)
    unlink_cells(board, victim.pos, geometry.wrap(victim.apply()), victim.direction)

    count = _lock_region(perimeter, solved_map, geometry)
    logger.debug("摂動で %d マスを解決済みにしました", count)
    return count


def enforce_uniqueness(
    board: np.ndarray,
    geometry: GridGeometry,
    rng: random.Random,
    *,
    stats: dict | None = None,
) -> bool:
    """盤面が一意に解けるまでソルバーと摂動を繰り返す

    成功すると ``board`` をソルバーの解で置き換えて True を返す。
    摂動したマスの数が前回より減らなくなったら見込みなしとして False を返す。
    """

    prev_count = -1
    while True:
        solved, solution = solve_layout(board, geometry.is_wrapping)
        if stats is not None:
            stats["perturb_passes"] = stats.get("perturb_passes", 0) + 1
        if solved:
            board[:, :] = solution_to_layout(solution)
            return True

        solved_map = np.array(
            [[v is not None for v in row] for row in solution], dtype=bool
        )
        logger.debug("前回の摂動マス数: %d", prev_count)

        curr_count = 0
        for y in range(geometry.height):
            for x in range(geometry.width):
                curr_solved = bool(solved_map[y, x])

                if x + 1 < geometry.width:
                    right_solved = bool(solved_map[y, x + 1])
                    if curr_solved and not right_solved:
                        curr_count += perturb(
                            Position(x + 1, y), Direction.LEFT, board, solved_map, geometry, rng
                        )
                    elif not curr_solved and right_solved:
                        curr_count += perturb(
                            Position(x, y), Direction.RIGHT, board, solved_map, geometry, rng
                        )

                if y + 1 < geometry.height:
                    down_solved = bool(solved_map[y + 1, x])
                    if curr_solved and not down_solved:
                        curr_count += perturb(
                            Position(x, y + 1), Direction.UP, board, solved_map, geometry, rng
                        )
                    elif not curr_solved and down_solved:
                        curr_count += perturb(
                            Position(x, y), Direction.DOWN, board, solved_map, geometry, rng
                        )

        if prev_count != -1 and prev_count <= curr_count:
            logger.debug("摂動の効果がありません (%d -> %d)", prev_count, curr_count)
            return False
        prev_count = curr_count


__all__ = ["perturb", "enforce_uniqueness"]
