"""盤面データの整合性を確認するモジュール"""

from __future__ import annotations

from typing import Any, Dict

import numpy as np

from .bitboard import count_edges
from .disjoint_set import DisjointSetForest
from .grid import GridGeometry
from .puzzle_types import LINK_MASK_ALL, Direction


def validate_layout(
    board: np.ndarray, is_wrapping: bool = False, *, require_tree: bool = True
) -> None:
    """リンク配列が完成した盤面として正しいか確認する

    隣り合うマスのリンクが向き合っていること、盤面の外へ向かうリンクが
    ないことを調べる。``require_tree`` が True なら、リンクを持つマスが
    すべてつながっていてループがないことも確認する。
    問題があれば ``ValueError`` を送出する。
    """

    if board.ndim != 2 or board.size == 0:
        raise ValueError("リンク配列は空でない 2 次元配列で指定してください")
    if int(board.max()) > LINK_MASK_ALL:
        raise ValueError("リンク値は 0 から 15 の範囲で指定してください")

    height, width = board.shape
    geometry = GridGeometry(width, height, is_wrapping)
    forest = DisjointSetForest()
    has_loop = False

    for pos in geometry.positions():
        mask = int(board[pos.y, pos.x])
        for d in Direction:
            if not mask & (1 << d):
                continue
            target = geometry.soft_wrap(pos + d)
            if target is None:
                raise ValueError(f"{pos} のリンクが盤面の外へ向いています")
            if not int(board[target.y, target.x]) & (1 << d.opposite()):
                raise ValueError(f"{pos} と {target} のリンクが向き合っていません")
            # 右と下だけ数えて各辺を 1 回ずつ調べる
            if d in (Direction.RIGHT, Direction.DOWN) and not forest.merge(pos, target):
                has_loop = True

    if not require_tree:
        return

    linked = [pos for pos in geometry.positions() if board[pos.y, pos.x]]
    if has_loop or (linked and count_edges(board) != len(linked) - 1):
        raise ValueError("リンクがループを作っています")
    if linked:
        root = forest.find_root(linked[0])
        if any(forest.find_root(pos) != root for pos in linked):
            raise ValueError("リンクでつながっていないマスがあります")


def validate_game_dict(data: Dict[str, Any]) -> None:
    """保存データの構造と値の範囲を確認する"""

    if not isinstance(data, dict):
        raise ValueError("保存データが辞書形式ではありません")
    desc = data.get("description")
    if not isinstance(desc, dict):
        raise ValueError("description フィールドが存在しません")
    for key in ("seed", "width", "height"):
        if not isinstance(desc.get(key), int) or isinstance(desc.get(key), bool):
            raise ValueError(f"description.{key} は整数で指定してください")
    width, height = desc["width"], desc["height"]
    if width <= 0 or height <= 0:
        raise ValueError("盤面サイズは 1 以上で指定してください")

    cells = data.get("cells")
    if not isinstance(cells, list) or len(cells) != height:
        raise ValueError("cells の行数が盤面サイズと一致しません")
    for row in cells:
        if not isinstance(row, list) or len(row) != width:
            raise ValueError("cells の列数が盤面サイズと一致しません")
        for cell in row:
            if not isinstance(cell, dict):
                raise ValueError("セルの形式が不正です")
            links = cell.get("links")
            if not isinstance(links, int) or not 0 <= links <= LINK_MASK_ALL:
                raise ValueError("links は 0 から 15 の整数で指定してください")
            if not isinstance(cell.get("locked", False), bool):
                raise ValueError("locked は真偽値で指定してください")

    walls = data.get("walls")
    if not isinstance(walls, list):
        raise ValueError("walls フィールドが存在しません")


__all__ = ["validate_layout", "validate_game_dict"]
