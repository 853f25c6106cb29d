"""共通定数や簡易ヘルパー関数を定義するモジュール"""

from __future__ import annotations

# 新しいゲームの既定サイズ
DEFAULT_WIDTH = 5
DEFAULT_HEIGHT = 5

# 一意化に失敗したときに作り直す最大回数
RETRY_LIMIT = 100

# 壁の生成は未実装のため常に 0.0 を使う
DEFAULT_WALL_PROBABILITY = 0.0


def _evaluate_difficulty(passes: int, area: int) -> str:
    """ソルバー統計から難易度を推定する関数"""

    # 全マスを積み直した回数が盤面の大きさに比べてどれだけ多いかで判断する
    if area <= 0:
        return "easy"
    ratio = passes / area
    if passes <= 2:
        return "easy"
    if ratio < 0.2:
        return "normal"
    if ratio < 0.5:
        return "hard"
    return "expert"


__all__ = [
    "DEFAULT_WIDTH",
    "DEFAULT_HEIGHT",
    "RETRY_LIMIT",
    "DEFAULT_WALL_PROBABILITY",
    "_evaluate_difficulty",
]
