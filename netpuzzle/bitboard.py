"""リンク配置を NumPy のビットボードとして扱う補助関数

盤面は ``(height, width)`` の ``uint8`` 配列で、各要素の下位 4 ビットが
RIGHT / UP / LEFT / DOWN へのリンクを表す。盤面全体をなめる処理は
numba でコンパイルして高速化している。
"""

from __future__ import annotations

import numpy as np
from numba import njit

# Direction の並び (RIGHT, UP, LEFT, DOWN) に対応する移動量
_DX = (1, 0, -1, 0)
_DY = (0, -1, 0, 1)

# EdgeState.OPEN の値。numba 内では列挙型を使えないため数値で持つ
_EDGE_OPEN = 1


def empty_layout(width: int, height: int) -> np.ndarray:
    """リンクのない盤面を作成する"""
    return np.zeros((height, width), dtype=np.uint8)


@njit(cache=True)
def _count_links_bitboard(masks: np.ndarray) -> int:
    """盤面全体で立っているリンクビットの総数を数える"""
    total = 0
    h, w = masks.shape
    for y in range(h):
        for x in range(w):
            m = int(masks[y, x])
            for d in range(4):
                total += (m >> d) & 1
    return total


def count_edges(masks: np.ndarray) -> int:
    """リンクでつながった辺の本数。両端が対応している前提で半分にする"""
    return int(_count_links_bitboard(masks)) // 2


@njit(cache=True)
def _flood_power(
    masks: np.ndarray, walls: np.ndarray, wrapping: bool, cx: int, cy: int
) -> np.ndarray:
    """中央のマスから幅優先で通電範囲を求める

    隣のマスへ進めるのは、互いにリンクが向き合っていて間の壁が開いている
    場合だけ。結果は通電していれば 1 の ``uint8`` 配列。
    """

    h, w = masks.shape
    power = np.zeros((h, w), dtype=np.uint8)
    queue = np.empty(h * w, dtype=np.int64)
    power[cy, cx] = 1
    queue[0] = cy * w + cx
    head = 0
    tail = 1
    while head < tail:
        cur = queue[head]
        head += 1
        y = cur // w
        x = cur - y * w
        m = int(masks[y, x])
        for d in range(4):
            if ((m >> d) & 1) == 0:
                continue
            nx = x + _DX[d]
            ny = y + _DY[d]
            if wrapping:
                nx = nx % w
                ny = ny % h
            elif nx < 0 or nx >= w or ny < 0 or ny >= h:
                continue
            back = (d + 2) % 4
            if ((int(masks[ny, nx]) >> back) & 1) == 0:
                continue
            # 辺を左辺 (0) か上辺 (1) に正規化して壁を調べる
            if d == 0:
                ex, ey, k = x + 1, y, 0
            elif d == 1:
                ex, ey, k = x, y, 1
            elif d == 2:
                ex, ey, k = x, y, 0
            else:
                ex, ey, k = x, y + 1, 1
            if wrapping:
                ex = ex % w
                ey = ey % h
            if walls[ey, ex, k] != _EDGE_OPEN:
                continue
            if power[ny, nx] != 0:
                continue
            power[ny, nx] = 1
            queue[tail] = ny * w + nx
            tail += 1
    return power


__all__ = ["empty_layout", "count_edges", "_count_links_bitboard", "_flood_power"]
