"""回転パズル (Net) の盤面生成モジュール"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Dict, Optional

import numpy as np

from .constants import (
    DEFAULT_HEIGHT,
    DEFAULT_WALL_PROBABILITY,
    DEFAULT_WIDTH,
    RETRY_LIMIT,
    _evaluate_difficulty,
)
from .game import Game
from .grid import GridGeometry
from .maze_builder import build_spanning_tree
from .perturb import enforce_uniqueness
from .puzzle_io import save_game
from .puzzle_types import GameDescription
from .solver import solve_layout
from .validator import validate_layout

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    """ログ出力の設定を行う関数

    Python の ``logging`` モジュールはアプリの動作状況を
    画面やファイルに出力する仕組みです。ここでは ``basicConfig`` を
    使ってフォーマットと出力レベルをまとめて設定します。

    :param level: 表示するログの重要度。``logging.INFO`` などを指定
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def generate_layout(
    desc: GameDescription,
    *,
    retry_limit: int | None = None,
    return_stats: bool = False,
) -> np.ndarray | tuple[np.ndarray, Dict[str, Any]]:
    """盤面の正解配置を生成して返す

    :param desc: 盤面サイズ・シード・折り返し・一意化の指定
    :param retry_limit: 一意化をやり直す最大回数。``None`` なら ``RETRY_LIMIT``
    :param return_stats: True なら生成統計も返す
    :return: ``(height, width)`` のリンク配列。``return_stats`` が True の場合は
        ``(配列, dict)`` のタプルを返す

    全マスに枝が届かなかったときや一意化が進まなくなったときは、
    現在の乱数から新しいシードを引いて盤面を作り直す。上限回数まで失敗した
    場合は最後に作った盤面を返し、統計の ``partial`` を True にする。

    返すのはリンク配列だけで、マスの固定状態は持たない。一意化に成功しても
    各マスを固定済みにはせず、``Game.from_layout`` で作ったセルはすべて
    固定なしになる。全セルの固定は ``Game.solve`` が行う。

    統計には、試行回数 (``attempts``)、ソルバーを呼んだ回数
    (``perturb_passes``)、一意に解けるか (``unique``)、最後に使ったシード
    (``seed``)、経過秒数 (``elapsed``) を記録する。一意に解ける場合は
    ソルバーの積み直し回数 (``solver_passes``) と難易度 (``difficulty``) も加える。
    """

    if retry_limit is None:
        retry_limit = RETRY_LIMIT
    if retry_limit <= 0:
        raise ValueError("retry_limit は 1 以上で指定してください")

    geometry = GridGeometry.from_description(desc)
    seed = desc.seed
    rng = random.Random(seed)

    start_time = time.perf_counter()
    logger.info(
        "盤面生成開始: %dx%d seed=%d wrapping=%s unique=%s",
        desc.width,
        desc.height,
        desc.seed,
        desc.is_wrapping,
        desc.is_unique,
    )

    stats: Dict[str, Any] = {"attempts": 0, "perturb_passes": 0, "partial": False}
    unique = False
    while True:
        stats["attempts"] += 1
        # 試行ごとに新しい配列を作るので前回の状態は残らない
        board = build_spanning_tree(geometry, rng)
        if geometry.area > 1 and np.count_nonzero(board) < geometry.area:
            # T 字に囲まれて枝が届かなかったマスがある
            reason = "全マスに枝が届かなかった"
        elif not desc.is_unique:
            break
        elif enforce_uniqueness(board, geometry, rng, stats=stats):
            unique = True
            break
        else:
            reason = "一意化が進まない"
        if stats["attempts"] >= retry_limit:
            stats["partial"] = True
            logger.warning("再試行の上限に達したため一意でない盤面を返します")
            break
        seed = rng.getrandbits(64)
        logger.warning("%sため seed=%d で作り直します", reason, seed)
        rng = random.Random(seed)

    validate_layout(board, desc.is_wrapping)

    stats["unique"] = unique
    stats["seed"] = seed
    if unique:
        _, _, solver_stats = solve_layout(board, desc.is_wrapping, return_stats=True)
        stats["solver_passes"] = solver_stats["passes"]
        stats["difficulty"] = _evaluate_difficulty(solver_stats["passes"], geometry.area)
    stats["elapsed"] = time.perf_counter() - start_time
    logger.info("盤面生成成功: %.3f 秒 (試行 %d 回)", stats["elapsed"], stats["attempts"])
    if return_stats:
        return board, stats
    return board


def generate_game(
    desc: GameDescription,
    *,
    randomize: bool = False,
    rng: Optional[random.Random] = None,
) -> Game:
    """生成した配置からゲームを作り、通電範囲を計算して返す

    :param randomize: True なら各セルをランダムに回して解けていない状態にする
    :param rng: 回転に使う乱数。省略時は ``desc.seed`` から作る
    """

    layout = generate_layout(desc)
    game = Game.from_layout(desc, layout)
    if randomize:
        game.randomize_rotations(rng if rng is not None else random.Random(desc.seed))
    else:
        game.compute_active()
    return game


def new_game(
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    *,
    seed: int | None = None,
    is_wrapping: bool = False,
    is_unique: bool = True,
    randomize: bool = True,
) -> Game:
    """新しいゲームを作る。``seed`` を省略すると現在時刻から決める"""
    if seed is None:
        seed = time.time_ns() & ((1 << 63) - 1)
    desc = GameDescription(
        seed=seed,
        width=width,
        height=height,
        wall_probability=DEFAULT_WALL_PROBABILITY,
        is_wrapping=is_wrapping,
        is_unique=is_unique,
    )
    return generate_game(desc, randomize=randomize)


# リンクマスクと罫線文字の対応
_BOX_CHARS = {
    0: " ",
    1: "╶",
    2: "╵",
    4: "╴",
    8: "╷",
    5: "─",
    10: "│",
    3: "└",
    6: "┘",
    12: "┐",
    9: "┌",
    7: "┴",
    14: "┤",
    13: "┬",
    11: "├",
    15: "┼",
}


def board_to_ascii(board: np.ndarray) -> str:
    """リンク配列を罫線文字の盤面へ変換する"""
    return "\n".join(
        "".join(_BOX_CHARS[int(mask)] for mask in row) for row in board
    )


if __name__ == "__main__":
    import argparse

    # ログ設定を行う。デフォルトは INFO レベル
    setup_logging()

    parser = argparse.ArgumentParser(description="回転パズルの盤面を生成します")
    parser.add_argument("width", type=int, help="盤面の列数")
    parser.add_argument("height", type=int, help="盤面の行数")
    parser.add_argument("--seed", type=int, default=None, help="乱数シード")
    parser.add_argument("--wrap", action="store_true", help="端がつながった盤面にする")
    parser.add_argument(
        "--no-unique", action="store_true", help="解の一意化を行わない"
    )
    parser.add_argument(
        "--shuffle", action="store_true", help="各セルをランダムに回した状態で出力する"
    )
    parser.add_argument(
        "--solve", action="store_true", help="ソルバーで解いた結果も表示する"
    )
    parser.add_argument(
        "--save", action="store_true", help="data/net_game.json に保存する"
    )
    args = parser.parse_args()

    game = new_game(
        args.width,
        args.height,
        seed=args.seed,
        is_wrapping=args.wrap,
        is_unique=not args.no_unique,
        randomize=args.shuffle,
    )
    print(f"seed={game.desc.seed} 通電 {game.compute_active()}/{args.width * args.height}")
    print(board_to_ascii(game.layout()))
    if args.solve:
        solved_game = game.clone()
        if solved_game.solve():
            print("解答:")
            print(board_to_ascii(solved_game.layout()))
        else:
            print("一意に解けませんでした")
    if args.save:
        path = save_game(game)
        print(f"{path} を作成しました")
