"""Polling loop driving the synchronizer on a fixed interval."""

from __future__ import annotations

import logging
from threading import Event

from wg_allowedips.sync import AllowedIPsSynchronizer

LOG = logging.getLogger(__name__)


class RouteWatcher:
    """Run reconciliation passes until ``stop_event`` is set.

    The loop runs on the calling thread; the event only replaces a plain
    sleep so that a signal handler can end the wait early.
    """

    def __init__(
        self,
        synchronizer: AllowedIPsSynchronizer,
        interval: float,
        stop_event: Event,
    ) -> None:
        self._sync = synchronizer
        self._interval = interval
        self._stop_event = stop_event

    def poll(self) -> bool:
        return self._sync.poll()

    def run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                if not self.poll():
                    LOG.debug("poll skipped, retrying in %ss", self._interval)
            except Exception:  # pragma: no cover - logged below
                LOG.exception("route watcher encountered an error")
