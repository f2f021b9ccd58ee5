#!/usr/bin/env python3
"""
Terminal runner for a single tile-layout search.

Runs the EA on a background worker and adds:
 - CLI arguments for board size and EA configuration
 - A single-line live status with best score and CPU/memory usage
 - Graceful shutdown on Ctrl+C (a second Ctrl+C aborts)
 - Run log, best board JSON and PNG written to --out-dir
"""

from __future__ import annotations

import argparse
import concurrent.futures
import os
import signal
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import psutil

from backend.src.carcassonne.catalogue import CatalogueError, base_catalogue, catalogue_summary, load_catalogue
from backend.src.carcassonne.evolver import ConfigurationError, EAConfig, Progress, validate_config
from backend.src.carcassonne.export import save_board, save_run_log
from backend.src.carcassonne.render import render_image, render_text
from backend.src.carcassonne.runner import SearchWorker
from backend.src.carcassonne.seeders import SEEDING_REGISTRY
from backend.src.carcassonne.selection import SELECTION_REGISTRY
from backend.src.carcassonne.tiles import Board
from backend.src.carcassonne.vars import (
    DEFAULT_BOARD_SIZE,
    ELITE_COUNT,
    MUTATION_RATE,
    POPULATION_SIZE,
    RANDOM_SEED,
    SEEDING,
    SELECTION,
    TOURNAMENT_K,
)

DEFAULT_REFRESH_S = 0.5
DEFAULT_OUT_DIR = Path("search-runs")
EXIT_CONFIG_ERROR = 2


def format_duration(seconds: float) -> str:
    seconds = int(seconds)
    mins, sec = divmod(seconds, 60)
    hours, mins = divmod(mins, 60)
    if hours:
        return f"{hours:02d}:{mins:02d}:{sec:02d}"
    return f"{mins:02d}:{sec:02d}"


class UsageProbe:
    """CPU and memory of this process and its pool workers."""

    def __init__(self) -> None:
        self.proc = psutil.Process()
        self.proc.cpu_percent(interval=None)

    def sample(self) -> Dict[str, Any]:
        children = self.proc.children(recursive=True)
        proc_cpu = self.proc.cpu_percent(interval=None)
        child_cpu = 0.0
        for child in children:
            try:
                child_cpu += child.cpu_percent(interval=None)
            except psutil.NoSuchProcess:
                continue
        return {
            "proc_cpu": proc_cpu,
            "child_cpu": child_cpu,
            "mem_mb": self.proc.memory_info().rss / (1024 * 1024),
        }


class TerminalUI:
    """Single-line stdout refresher for live status (minimal flicker)."""

    def __init__(self, refresh_s: float = DEFAULT_REFRESH_S, enabled: bool = True) -> None:
        self.refresh_s = refresh_s
        self.enabled = enabled
        self._last_print = 0.0
        self._last_len = 0
        self._last_line = ""

    @staticmethod
    def build_line(state: Dict[str, Any]) -> str:
        line = f"[{format_duration(state['elapsed'])}]"
        progress: Optional[Progress] = state.get("progress")
        if progress is None:
            line += " seeding population"
        else:
            line += (
                f" gen {progress.generation}"
                f" | best {progress.best_score}"
                f" | gen best {progress.generation_best} mean {progress.generation_mean:.1f}"
            )
        cpu = state.get("cpu")
        if cpu:
            line += f" | cpu {cpu['proc_cpu'] + cpu['child_cpu']:.1f}% | mem {cpu['mem_mb']:.1f} MB"
        return line

    def render(self, state: Dict[str, Any], *, force: bool = False) -> None:
        if not self.enabled:
            return
        now = time.time()
        if not force and (now - self._last_print < self.refresh_s):
            return
        line = self.build_line(state)
        if not force and line == self._last_line:
            return

        pad = max(0, self._last_len - len(line))
        sys.stdout.write("\r" + line + " " * pad)
        sys.stdout.flush()
        self._last_len = len(line)
        self._last_print = now
        self._last_line = line

    def finish(self) -> None:
        """Move to the next line after the final render."""
        if self.enabled and self._last_len:
            sys.stdout.write("\n")
            sys.stdout.flush()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evolve a Carcassonne tile layout with a genetic algorithm.")
    parser.add_argument("--width", type=int, default=DEFAULT_BOARD_SIZE, help="Board width in cells.")
    parser.add_argument("--height", type=int, default=DEFAULT_BOARD_SIZE, help="Board height in cells.")
    parser.add_argument("--population", type=int, default=POPULATION_SIZE, help="Population size.")
    parser.add_argument("--mutation-rate", type=float, default=MUTATION_RATE, help="Per-child mutation probability.")
    parser.add_argument("--elite", type=int, default=ELITE_COUNT, help="Genomes copied unchanged into the next generation.")
    parser.add_argument("--selection", choices=sorted(SELECTION_REGISTRY), default=SELECTION, help="Parent selection.")
    parser.add_argument("--tournament-k", type=int, default=TOURNAMENT_K, help="Tournament size for --selection tournament.")
    parser.add_argument("--seeding", choices=sorted(SEEDING_REGISTRY), default=SEEDING, help="Initial population seeder.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility.")
    parser.add_argument("--max-generations", type=int, default=None, help="Stop after this many generations.")
    parser.add_argument("--max-runtime-min", type=float, default=None, help="Stop after this many minutes (graceful).")
    parser.add_argument("--workers", type=int, default=1, help="Process workers for fitness evaluation (1 = in-thread).")
    parser.add_argument("--catalogue", type=Path, default=None, help="JSON tile catalogue (default: base game).")
    parser.add_argument("--limit", type=int, default=None, help="Only use the first N tiles of the catalogue.")
    parser.add_argument("--out-dir", type=Path, default=DEFAULT_OUT_DIR, help="Where to write the run log and best board.")
    parser.add_argument("--refresh-s", type=float, default=DEFAULT_REFRESH_S, help="Status refresh interval.")
    parser.add_argument("--no-ui", action="store_true", help="Disable the live status line (still prints summaries).")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> EAConfig:
    return EAConfig(
        board_width=args.width,
        board_height=args.height,
        population_size=args.population,
        mutation_rate=args.mutation_rate,
        elite_count=args.elite,
        selection=args.selection,
        tournament_k=args.tournament_k,
        seeding=args.seeding,
        random_seed=args.seed if args.seed is not None else RANDOM_SEED,
        max_generations=args.max_generations,
    )


def write_outputs(out_dir: Path, result, cfg: EAConfig, elapsed: float) -> List[Path]:
    log_path = save_run_log(out_dir, result, cfg, elapsed)
    stamp = log_path.stem.removeprefix("search_run_")
    board = result_board(result, cfg)
    board_path = save_board(board, out_dir / f"best_board_{stamp}.json")
    image_path = out_dir / f"best_board_{stamp}.png"
    render_image(board).save(image_path)
    return [log_path, board_path, image_path]


def result_board(result, cfg: EAConfig) -> Board:
    return Board.from_placements(result.best.resolved, cfg.board_width, cfg.board_height)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    try:
        catalogue = load_catalogue(args.catalogue) if args.catalogue else base_catalogue()
    except (CatalogueError, OSError) as exc:
        print(f"Catalogue error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    if args.limit is not None:
        catalogue = catalogue[: max(0, args.limit)]

    cfg = build_config(args)
    try:
        validate_config(catalogue, cfg)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    executor_factory = None
    if args.workers > 1:
        workers = min(args.workers, os.cpu_count() or 1)

        def executor_factory() -> concurrent.futures.Executor:
            return concurrent.futures.ProcessPoolExecutor(max_workers=workers)

    max_runtime = args.max_runtime_min * 60 if args.max_runtime_min else None
    worker = SearchWorker(catalogue, cfg, executor_factory=executor_factory)
    ui = TerminalUI(refresh_s=args.refresh_s, enabled=not args.no_ui)
    probe = UsageProbe()

    print(
        f"Init: tiles={len(catalogue)} ({len(catalogue_summary(catalogue))} kinds), board={cfg.board_width}x{cfg.board_height}, pop={cfg.population_size}, "
        f"mutation={cfg.mutation_rate}, selection={cfg.selection}, seeding={cfg.seeding}, seed={cfg.random_seed}, "
        f"workers={args.workers}, runtime_limit={'none' if max_runtime is None else f'{max_runtime/60:.1f} min'}",
        flush=True,
    )

    stop_reason = ""
    interrupted = False

    def handle_interrupt(signum, frame) -> None:
        nonlocal stop_reason, interrupted
        if interrupted:
            raise KeyboardInterrupt
        interrupted = True
        worker.stop()
        stop_reason = "Keyboard interrupt requested; finishing current generation."

    old_handler = signal.signal(signal.SIGINT, handle_interrupt)
    start_time = time.time()
    latest: Optional[Progress] = None
    try:
        worker.start()
        while worker.is_alive():
            worker.join(args.refresh_s)
            events = worker.drain()
            if events:
                latest = events[-1]
            elapsed = time.time() - start_time
            if max_runtime and elapsed >= max_runtime and not worker.stop_event.is_set():
                worker.stop()
                stop_reason = f"Reached runtime limit {format_duration(max_runtime)}."
            ui.render({"elapsed": elapsed, "progress": latest, "cpu": probe.sample()})
        events = worker.drain()
        if events:
            latest = events[-1]
        ui.render({"elapsed": time.time() - start_time, "progress": latest, "cpu": probe.sample()}, force=True)
        ui.finish()
        result = worker.join_result()
    except KeyboardInterrupt:
        ui.finish()
        print("Aborted.", file=sys.stderr)
        raise
    finally:
        signal.signal(signal.SIGINT, old_handler)

    elapsed = time.time() - start_time
    if stop_reason:
        print(stop_reason)
    status = "converged" if result.converged else "stopped"
    print(f"Search {status} after {result.generations} generation(s) in {format_duration(elapsed)}; best score {result.score}.")
    print(render_text(result_board(result, cfg)))
    for path in write_outputs(args.out_dir, result, cfg, elapsed):
        print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
