"""ゲームを保存・読み込みする処理をまとめたモジュール"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .edge_grid import EdgeGrid
from .game import Game
from .puzzle_types import Cell, GameDescription, Links
from .validator import validate_game_dict

# 保存形式を変えたときに上げる
SCHEMA_VERSION = "1.0"


def game_to_dict(game: Game) -> Dict[str, Any]:
    """ゲームを JSON に書き出せる辞書へ変換する

    通電状態は読み込み時に計算し直すので保存しない。
    """

    desc = game.desc
    return {
        "schemaVersion": SCHEMA_VERSION,
        "description": {
            "seed": desc.seed,
            "width": desc.width,
            "height": desc.height,
            "wallProbability": desc.wall_probability,
            "isWrapping": desc.is_wrapping,
            "isUnique": desc.is_unique,
        },
        "cells": [
            [{"links": cell.links.inner, "locked": cell.locked} for cell in row]
            for row in game.cells
        ],
        "walls": game.walls.to_list(),
    }


def game_from_dict(data: Dict[str, Any]) -> Game:
    """辞書からゲームを復元する。不正なデータなら ``ValueError``"""

    validate_game_dict(data)
    raw = data["description"]
    desc = GameDescription(
        seed=raw["seed"],
        width=raw["width"],
        height=raw["height"],
        wall_probability=float(raw.get("wallProbability", 0.0)),
        is_wrapping=bool(raw.get("isWrapping", False)),
        is_unique=bool(raw.get("isUnique", True)),
    )
    cells = [
        [Cell(Links(cell["links"]), locked=cell.get("locked", False)) for cell in row]
        for row in data["cells"]
    ]
    walls = EdgeGrid.from_list(desc.width, desc.height, desc.is_wrapping, data["walls"])
    game = Game(desc, cells, walls)
    game.compute_active()
    return game


def save_game(game: Game, directory: str | Path = "data") -> Path:
    """ゲームを JSON 形式で保存する"""
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    file_path = path / "net_game.json"
    with file_path.open("w", encoding="utf-8") as fp:
        json.dump(game_to_dict(game), fp, ensure_ascii=False, indent=2)
    return file_path


def load_game(path: str | Path) -> Game:
    """``save_game`` で保存したファイルを読み込む"""
    with Path(path).open(encoding="utf-8") as fp:
        try:
            data = json.load(fp)
        except json.JSONDecodeError as exc:
            raise ValueError(f"保存データを読み込めません: {exc}") from exc
    return game_from_dict(data)


__all__ = ["SCHEMA_VERSION", "game_to_dict", "game_from_dict", "save_game", "load_game"]
