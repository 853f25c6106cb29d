"""ループ検出に使う素集合データ構造"""

from __future__ import annotations

from typing import Dict, Hashable


class DisjointSetForest:
    """経路半減法 (path halving) による Union-Find

    要素は初めて参照された時点で自分自身を親とする集合として登録される。
    """

    def __init__(self) -> None:
        self._parents: Dict[Hashable, Hashable] = {}

    def get_parent(self, x: Hashable) -> Hashable:
        return self._parents.setdefault(x, x)

    def find_root(self, x: Hashable) -> Hashable:
        while True:
            parent = self.get_parent(x)
            if parent == x:
                return x
            # 親を祖父へ付け替えながら上へ進む
            grandparent = self.get_parent(parent)
            self._parents[x] = grandparent
            x = grandparent

    def merge(self, x: Hashable, y: Hashable) -> bool:
        """2 つの集合を併合する。既に同じ集合なら False"""
        root_x = self.find_root(x)
        root_y = self.find_root(y)
        if root_x == root_y:
            return False
        self._parents[root_y] = root_x
        return True

    def connected(self, x: Hashable, y: Hashable) -> bool:
        return self.find_root(x) == self.find_root(y)


__all__ = ["DisjointSetForest"]
