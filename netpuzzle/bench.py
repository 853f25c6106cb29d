import random
import time
from typing import Optional

from . import generator
from .puzzle_types import GameDescription


def run(
    width: int,
    height: int,
    n: int = 1,
    *,
    seed: Optional[int] = None,
    is_wrapping: bool = False,
) -> float:
    """指定回数盤面を生成して平均時間を返す簡易ベンチマーク関数"""
    rng = random.Random(seed)
    total = 0.0
    for _ in range(n):
        desc = GameDescription(
            seed=rng.randint(0, 2**32),
            width=width,
            height=height,
            is_wrapping=is_wrapping,
        )
        start = time.perf_counter()
        generator.generate_layout(desc)
        total += time.perf_counter() - start
    avg = total / n if n else 0.0
    print(f"平均生成時間: {avg:.3f} 秒")
    return avg


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="盤面生成ベンチマーク")
    parser.add_argument("width", type=int, help="盤面の列数")
    parser.add_argument("height", type=int, help="盤面の行数")
    parser.add_argument("-n", type=int, default=1, help="生成回数")
    parser.add_argument("--seed", type=int, help="乱数シード")
    parser.add_argument("--wrap", action="store_true", help="端がつながった盤面にする")
    args = parser.parse_args()
    run(args.width, args.height, args.n, seed=args.seed, is_wrapping=args.wrap)
