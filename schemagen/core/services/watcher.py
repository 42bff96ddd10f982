"""
Schema watcher — regenerate the aggregator when table modules change.

Design decisions
────────────────
1. **Mtime polling** (not inotify/watchdog): the scanner already knows
   which files matter, and a stat() per module per poll is negligible.
2. **Debounce**: an editor save often touches a file several times.
   A change only triggers regeneration once the tree has been quiet for
   ``debounce`` seconds.
3. **Serialized runs**: regeneration happens under a lock, so a new run
   never starts while a previous one is still writing the output.  An
   in-flight run is always allowed to finish.
4. **Errors don't stop the loop**: a half-typed module that fails to scan
   is logged and retried on the next change.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path

from schemagen.core.errors import SchemagenError
from schemagen.core.models.config import GenerationConfig
from schemagen.core.services.scanner import scan_modules

logger = logging.getLogger(__name__)

POLL_INTERVAL_S = 1.0
DEBOUNCE_S = 0.5


class SchemaWatcher:
    """Poll the schema dir and call ``regenerate`` after changes settle.

    Args:
        config: Generation config; ``schema_dir`` is what gets watched.
        regenerate: Called with the config for each regeneration.
        poll_interval: Seconds between polls in ``start()``.
        debounce: Quiet period required before regenerating.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        config: GenerationConfig,
        regenerate: Callable[[GenerationConfig], object],
        *,
        poll_interval: float = POLL_INTERVAL_S,
        debounce: float = DEBOUNCE_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.regenerate = regenerate
        self.poll_interval = poll_interval
        self.debounce = debounce
        self.clock = clock

        self.runs = 0
        self._snapshot: dict[Path, float] = self.snapshot()
        self._dirty = False
        self._last_change = 0.0
        self._run_lock = threading.Lock()
        self._stop = threading.Event()

    def snapshot(self) -> dict[Path, float]:
        """Current mtime of every scanned module (empty if the dir is gone)."""
        try:
            modules = scan_modules(self.config)
        except SchemagenError as e:
            logger.debug("Watch scan failed: %s", e)
            return {}

        mtimes: dict[Path, float] = {}
        for path in modules:
            try:
                mtimes[path] = path.stat().st_mtime
            except OSError:
                continue  # deleted between scan and stat
        return mtimes

    def check(self, now: float | None = None) -> bool:
        """Run one poll cycle.

        Returns:
            True if a regeneration ran during this cycle.
        """
        if now is None:
            now = self.clock()

        current = self.snapshot()
        if current != self._snapshot:
            changed = _changed_paths(self._snapshot, current)
            logger.info("Change detected: %s", ", ".join(p.name for p in changed[:5]))
            self._snapshot = current
            self._dirty = True
            self._last_change = now
            return False

        if not self._dirty or now - self._last_change < self.debounce:
            return False

        return self.run_once()

    def run_once(self) -> bool:
        """Regenerate now, waiting for any in-flight run to finish first."""
        with self._run_lock:
            self._dirty = False
            self.runs += 1
            try:
                self.regenerate(self.config)
            except SchemagenError as e:
                logger.error("Regeneration failed: %s", e)
                return False
        return True

    def start(self, *, blocking: bool = True) -> threading.Thread | None:
        """Poll until ``stop()`` is called.

        With ``blocking=False`` the loop runs in a daemon thread, which is
        returned.
        """
        logger.info(
            "Watching %s (poll every %.1fs, debounce %.1fs)",
            self.config.schema_dir, self.poll_interval, self.debounce,
        )
        if not blocking:
            t = threading.Thread(target=self._loop, daemon=True, name="schema-watcher")
            t.start()
            return t
        self._loop()
        return None

    def stop(self) -> None:
        self._stop.set()

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.check()
            except Exception:
                logger.exception("Watch cycle failed; continuing")
            self._stop.wait(self.poll_interval)


def _changed_paths(before: dict[Path, float], after: dict[Path, float]) -> list[Path]:
    keys = before.keys() | after.keys()
    return sorted(p for p in keys if before.get(p) != after.get(p))
