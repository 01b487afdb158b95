import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger("kaya.transport.scheduler")

DEFAULT_INTERVAL = 60


class SyncScheduler:
    """Runs a sync cycle on a daemon thread every `interval` seconds.

    `cancel` is the shutdown token handed over at spawn time. It is only
    checked between cycles, so an in-flight HTTP call is never interrupted
    and shutdown can lag by up to one cycle.
    """

    def __init__(self, cycle: Callable[[], object], interval: float = DEFAULT_INTERVAL,
                 cancel: Optional[threading.Event] = None):
        self.cycle = cycle
        self.interval = interval
        self.cancel = cancel or threading.Event()
        self.thread = None
        self.cycles = 0
        self._done = threading.Condition()

    def tick(self):
        try:
            self.cycle()
        except Exception:
            logger.exception("Sync error")
        finally:
            with self._done:
                self.cycles += 1
                self._done.notify_all()

    def wait_for_cycles(self, count: int, timeout: Optional[float] = None) -> bool:
        with self._done:
            return self._done.wait_for(lambda: self.cycles >= count, timeout=timeout)

    def _loop(self):
        while not self.cancel.is_set():
            self.tick()
            self.cancel.wait(self.interval)
        logger.info("sync scheduler stopped")

    def start(self):
        if self.thread is not None and self.thread.is_alive():
            return
        self.thread = threading.Thread(target=self._loop, name="kaya-sync", daemon=True)
        self.thread.start()

    def stop(self, timeout: Optional[float] = None):
        self.cancel.set()
        if self.thread is not None and timeout:
            self.thread.join(timeout=timeout)
