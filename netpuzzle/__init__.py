"""生成・解答・入出力の関数を公開するパッケージ用モジュール"""

from importlib import import_module
from typing import Any

__all__ = [
    "Game",
    "GameDescription",
    "generate_layout",
    "generate_game",
    "new_game",
    "board_to_ascii",
    "solve_layout",
    "save_game",
    "load_game",
    "validate_layout",
    "is_unique",
]


def __getattr__(name: str) -> Any:
    """必要になったタイミングで対象モジュールを読み込む"""

    if name in {"generate_layout", "generate_game", "new_game", "board_to_ascii"}:
        module = import_module(".generator", __name__)
        return getattr(module, name)

    if name == "Game":
        module = import_module(".game", __name__)
        return getattr(module, name)

    if name == "GameDescription":
        module = import_module(".puzzle_types", __name__)
        return getattr(module, name)

    if name == "solve_layout":
        module = import_module(".solver", __name__)
        return getattr(module, name)

    if name in {"save_game", "load_game"}:
        module = import_module(".puzzle_io", __name__)
        return getattr(module, name)

    if name == "validate_layout":
        module = import_module(".validator", __name__)
        return getattr(module, name)

    if name == "is_unique":
        module = import_module(".sat_unique", __name__)
        return getattr(module, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name}")
