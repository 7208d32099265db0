"""Periodic tick sources for the study timer."""
import logging
import threading

logger = logging.getLogger(__name__)


class PeriodicTicker:
    """
    Calls a callback every ``interval`` seconds on a daemon thread.

    Each ``start()`` gets its own stop event, so a run that was cancelled
    from inside its own callback winds down on its own while a fresh run
    may already have been started. ``cancel()`` is idempotent.

    Args:
        interval (float): Seconds between two calls.
        lock (threading.Lock | None): Held while the callback runs, so the
            callback is serialised with other users of the same lock.
        name (str): Thread name, shows up in logs.
    """

    def __init__(self, interval=1.0, lock=None, name="study-timer"):
        self.interval = interval
        self.name = name
        self._lock = lock
        self._thread = None
        self._stopped = None

    @property
    def active(self):
        return self._thread is not None and not self._stopped.is_set()

    def start(self, callback):
        if self.active:
            return
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(callback, self._stopped),
            name=self.name,
            daemon=True,
        )
        self._thread.start()
        logger.debug("Ticker %s started (every %.2fs)", self.name, self.interval)

    def cancel(self):
        if self._stopped is not None and not self._stopped.is_set():
            self._stopped.set()
            logger.debug("Ticker %s cancelled", self.name)
        self._thread = None

    def _run(self, callback, stopped):
        while not stopped.wait(self.interval):
            try:
                if self._lock is None:
                    callback()
                else:
                    with self._lock:
                        # cancelled while waiting for the lock
                        if stopped.is_set():
                            break
                        callback()
            except Exception:
                logger.exception("Tick callback of %s failed", self.name)


class ManualTicker:
    """
    A tick source that only fires when told to.

    Used when background threads are disabled (tests, CLI tooling):
    ``fire()`` invokes the registered callback directly.
    """

    def __init__(self):
        self._callback = None
        self.starts = 0
        self.cancels = 0

    @property
    def active(self):
        return self._callback is not None

    def start(self, callback):
        if self._callback is not None:
            return
        self._callback = callback
        self.starts += 1

    def cancel(self):
        if self._callback is not None:
            self.cancels += 1
        self._callback = None

    def fire(self, times=1):
        """Deliver up to ``times`` ticks; stops early once the ticker is cancelled."""
        fired = 0
        for _ in range(times):
            if self._callback is None:
                break
            self._callback()
            fired += 1
        return fired
