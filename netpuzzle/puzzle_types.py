"""盤面を構成する基本型をまとめたモジュール

方向・リンク・セル・ゲーム設定など、生成器とソルバーが共有する型を定義する。
Python 標準ライブラリの ``types`` モジュールと名前が衝突しないよう、
このファイル名を ``puzzle_types`` としている。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List


class Direction(IntEnum):
    """4 方向を表す列挙型

    値はリンクのビット位置と一致する。反時計回りに RIGHT → UP → LEFT → DOWN
    の順で並んでいる。
    """

    RIGHT = 0
    UP = 1
    LEFT = 2
    DOWN = 3

    def opposite(self) -> Direction:
        """反対方向を返す"""
        return Direction((self + 2) % 4)

    def clockwise(self) -> Direction:
        return Direction((self + 3) % 4)

    def anticlockwise(self) -> Direction:
        return Direction((self + 1) % 4)

    def rotated(self, n: int) -> Direction:
        """時計回りに 90 度ずつ ``n`` 回回転した方向を返す"""
        return Direction((self - n) % 4)

    @property
    def delta(self) -> tuple[int, int]:
        """(dx, dy) の移動量。画面座標なので UP は y が減る"""
        return _DELTAS[self]


_DELTAS = ((1, 0), (0, -1), (-1, 0), (0, 1))

# 4 ビットすべてが立った状態
LINK_MASK_ALL = 0xF


def link_count(mask: int) -> int:
    """リンク数 (立っているビット数) を返す"""
    return bin(mask & LINK_MASK_ALL).count("1")


def rotate_mask_clockwise(mask: int) -> int:
    """4 ビットのマスクを時計回りに 90 度回転する"""
    return ((mask & 0xE) >> 1) | ((mask & 0x1) << 3)


def rotate_mask_anticlockwise(mask: int) -> int:
    """4 ビットのマスクを反時計回りに 90 度回転する"""
    return ((mask & 0x7) << 1) | ((mask & 0x8) >> 3)


def orientations_of(mask: int) -> List[int]:
    """回転で到達できる向きを重複なしで列挙する

    先頭は現在の向きで、以降は反時計回りに回した向きを元に戻るまで並べる。
    対称なタイルは 4 通り未満になる。
    """

    result = [mask]
    for _ in range(3):
        rotated = rotate_mask_anticlockwise(result[-1])
        if rotated == mask:
            break
        result.append(rotated)
    return result


@dataclass(frozen=True)
class Links:
    """タイルがどの方向へつながっているかを表す 4 ビット値"""

    inner: int = 0

    @classmethod
    def of(cls, *directions: Direction) -> Links:
        mask = 0
        for d in directions:
            mask |= 1 << d
        return cls(mask)

    def is_linked_to(self, direction: Direction) -> bool:
        return bool(self.inner & (1 << direction))

    def is_linked(self) -> bool:
        return self.inner > 0

    def link_count(self) -> int:
        return link_count(self.inner)

    def clockwised(self) -> Links:
        return Links(rotate_mask_clockwise(self.inner))

    def anticlockwised(self) -> Links:
        return Links(rotate_mask_anticlockwise(self.inner))

    def with_link(self, direction: Direction) -> Links:
        return Links(self.inner | (1 << direction))

    def without_link(self, direction: Direction) -> Links:
        return Links(self.inner & ~(1 << direction) & LINK_MASK_ALL)

    def shape(self) -> str:
        """タイルの形を 1 文字で返す

        P: 端点, I: 直線, L: 曲がり角, T: 三叉路, +: 十字または空
        """

        count = self.link_count()
        if count == 1:
            return "P"
        if count == 2:
            # 0b0101 (左右) と 0b1010 (上下) が直線
            return "I" if self.inner in (5, 10) else "L"
        if count == 3:
            return "T"
        return "+"


@dataclass
class Cell:
    """盤面の 1 マス

    ``mis_links`` は表示用に誤ったリンクを強調するための値で、
    比較の対象には含めない。
    """

    links: Links = field(default_factory=Links)
    locked: bool = False
    powered: bool = False
    mis_links: Links = field(default_factory=Links, compare=False)

    def clone(self) -> Cell:
        return Cell(self.links, self.locked, self.powered)


@dataclass(frozen=True)
class GameDescription:
    """盤面生成のパラメータ

    :param seed: 64 ビットの乱数シード
    :param wall_probability: 予約済みの値。現在の生成処理では使わない
    :param is_wrapping: 上下左右の端がつながったトーラス盤面にするか
    :param is_unique: 解が一意になるまで盤面を調整するか
    """

    seed: int
    width: int
    height: int
    wall_probability: float = 0.0
    is_wrapping: bool = False
    is_unique: bool = True

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width と height は 1 以上を指定してください")


__all__ = [
    "Direction",
    "LINK_MASK_ALL",
    "link_count",
    "rotate_mask_clockwise",
    "rotate_mask_anticlockwise",
    "orientations_of",
    "Links",
    "Cell",
    "GameDescription",
]
