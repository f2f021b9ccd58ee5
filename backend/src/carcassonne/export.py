from __future__ import annotations

import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

from .tiles import SIDES, Board


def board_to_dict(board: Board) -> Dict[str, Any]:
    """JSON-ready snapshot: board size plus one entry per placed tile with its absolute sides."""
    cells = []
    for placement in board.placements():
        cells.append(
            {
                "x": placement.pos.x,
                "y": placement.pos.y,
                "tile": placement.template.name,
                "orientation": str(placement.orientation),
                "sides": {str(side): str(placement.side(side)) for side in SIDES},
            }
        )
    return {"width": board.width, "height": board.height, "cells": cells}


def save_board(board: Board, path: Path | str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(board_to_dict(board), indent=2))
    return path


def _config_summary(cfg) -> Dict[str, Any]:
    """EAConfig fields plus weights."""
    summary_fields = [
        "board_width",
        "board_height",
        "population_size",
        "mutation_rate",
        "mutate_orientation",
        "elite_count",
        "selection",
        "tournament_k",
        "seeding",
        "random_seed",
        "max_generations",
    ]
    summary = {field: getattr(cfg, field, None) for field in summary_fields}
    summary["weights"] = asdict(cfg.weights)
    return summary


def save_run_log(log_dir: Path | str, result, cfg, elapsed: float) -> Path:
    """Write ``search_run_<timestamp>.json`` with config, history and best board."""
    now = time.strftime("%Y%m%dT%H%M%SZ", time.gmtime())
    best = result.best
    payload = {
        "run_id": now,
        "timestamp_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "elapsed_s": round(elapsed, 3),
        "generations": result.generations,
        "converged": result.converged,
        "best_fitness": result.score,
        "best_scores": asdict(best.scores) if best.scores is not None else None,
        "history": result.history,
        "config": _config_summary(cfg),
        "board": board_to_dict(Board.from_placements(best.resolved, cfg.board_width, cfg.board_height)),
    }
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"search_run_{now}.json"
    log_path.write_text(json.dumps(payload, indent=2))
    return log_path
