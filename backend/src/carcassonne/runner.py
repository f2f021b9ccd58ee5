from __future__ import annotations

"""
Background search worker.

The search runs on its own thread and hands (score, board) snapshots to the
consumer through a bounded queue. Publishing never blocks the search: when the
queue is full the oldest snapshot is dropped. A stop flag is checked once per
generation.
"""

import queue
import threading
from concurrent.futures import Executor
from typing import Callable, List, Optional, Sequence

from .evolver import EAConfig, Progress, SearchResult, evolve
from .tiles import TileTemplate
from .vars import PROGRESS_QUEUE_SIZE

ExecutorFactory = Callable[[], Executor]


class SearchWorker(threading.Thread):
    def __init__(
        self,
        catalogue: Sequence[TileTemplate],
        cfg: EAConfig,
        *,
        queue_size: int = PROGRESS_QUEUE_SIZE,
        executor_factory: Optional[ExecutorFactory] = None,
    ) -> None:
        super().__init__(name="carcassonne-search", daemon=True)
        self.catalogue = list(catalogue)
        self.cfg = cfg
        self.progress: queue.Queue[Progress] = queue.Queue(maxsize=max(1, queue_size))
        self.stop_event = threading.Event()
        self.executor_factory = executor_factory
        self.result: SearchResult | None = None
        self.error: BaseException | None = None

    def publish(self, event: Progress) -> None:
        while True:
            try:
                self.progress.put_nowait(event)
                return
            except queue.Full:
                try:
                    self.progress.get_nowait()
                except queue.Empty:
                    pass

    def run(self) -> None:
        try:
            if self.executor_factory is None:
                self.result = evolve(self.catalogue, self.cfg, on_progress=self.publish, stop_event=self.stop_event)
            else:
                with self.executor_factory() as ex:
                    self.result = evolve(
                        self.catalogue,
                        self.cfg,
                        on_progress=self.publish,
                        stop_event=self.stop_event,
                        executor=ex,
                    )
        except Exception as exc:  # noqa: BLE001
            self.error = exc

    def stop(self) -> None:
        """Ask the search to finish after the current generation."""
        self.stop_event.set()

    def drain(self) -> List[Progress]:
        """All snapshots published since the last drain, oldest first."""
        events: List[Progress] = []
        while True:
            try:
                events.append(self.progress.get_nowait())
            except queue.Empty:
                return events

    def join_result(self, timeout: float | None = None) -> SearchResult:
        self.join(timeout)
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise RuntimeError("Search worker has not finished")
        return self.result
