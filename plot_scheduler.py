"""
Background sampling with stale-result suppression.

Each logical plot (``plot_id``) carries a generation counter. Submitting a
new request bumps the counter; a result whose generation is no longer the
latest comes back marked ``stale`` with its data dropped, so only the last
submitted request for a plot is ever applied.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class PlotResult:
    plot_id: str
    generation: int
    data: Any = None
    stale: bool = False
    error: Optional[str] = None
    elapsed: float = 0.0

    @property
    def ok(self):
        return not self.stale and self.error is None


class PlotScheduler:
    """Thread pool for sampling jobs, last-submitted-wins per ``plot_id``.

    Jobs receive a ``deadline`` keyword (monotonic seconds) ``timeout``
    seconds after submission so that samplers can stop early and return a
    partial result.
    """

    def __init__(self, max_workers=4, timeout=5.0):
        self.timeout = timeout
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sampler")
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def _bump(self, plot_id):
        with self._lock:
            generation = self._generations.get(plot_id, 0) + 1
            self._generations[plot_id] = generation
            return generation

    def is_current(self, plot_id, generation):
        with self._lock:
            return self._generations.get(plot_id) == generation

    def cancel(self, plot_id):
        """Supersede whatever is in flight for ``plot_id``."""
        self._bump(plot_id)

    def _run(self, plot_id, generation, fn, args, kwargs):
        if not self.is_current(plot_id, generation):
            logger.info("Plot %s generation %d superseded before start", plot_id, generation)
            return PlotResult(plot_id, generation, stale=True)

        started = time.monotonic()
        try:
            data = fn(*args, **kwargs)
            error = None
        except Exception as e:
            logger.error("Plot %s generation %d failed: %s", plot_id, generation, e)
            data, error = None, str(e)
        elapsed = time.monotonic() - started

        if not self.is_current(plot_id, generation):
            logger.info("Plot %s generation %d finished stale after %.3fs", plot_id, generation, elapsed)
            return PlotResult(plot_id, generation, stale=True, elapsed=elapsed)
        return PlotResult(plot_id, generation, data, error=error, elapsed=elapsed)

    def submit(self, plot_id, fn, *args, **kwargs):
        """Queue ``fn(*args, deadline=..., **kwargs)``; returns a Future[PlotResult]."""
        generation = self._bump(plot_id)
        kwargs.setdefault("deadline", time.monotonic() + self.timeout)
        return self.executor.submit(self._run, plot_id, generation, fn, args, kwargs)

    def request(self, plot_id, fn, *args, **kwargs):
        """Submit and wait. Samplers honour the deadline, so the wait is bounded."""
        future = self.submit(plot_id, fn, *args, **kwargs)
        return future.result()

    def shutdown(self, wait=True):
        self.executor.shutdown(wait=wait)
