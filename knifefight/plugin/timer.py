"""Single-shot cancelable deadline for the running duel."""

from __future__ import annotations

import logging
from typing import Callable

from knifefight.plugin.host import Host, TimerHandle

logger = logging.getLogger(__name__)


class DuelTimer:
    def __init__(self, host: Host) -> None:
        self._host = host
        self._handle: TimerHandle | None = None
        self._generation = 0
        self._armed = False

    @property
    def armed(self) -> bool:
        return self._armed

    def arm(self, duration_seconds: float, on_expire: Callable[[], None]) -> None:
        self.cancel()
        self._generation += 1
        generation = self._generation
        self._armed = True

        def fire() -> None:
            # A killed or superseded host timer must not reach the controller.
            if generation != self._generation or not self._armed:
                logger.debug("Ignoring stale duel timer (generation %s)", generation)
                return
            self._armed = False
            self._handle = None
            on_expire()

        self._handle = self._host.add_timer(duration_seconds, fire)

    def cancel(self) -> None:
        handle = self._handle
        self._handle = None
        if self._armed:
            self._generation += 1
        self._armed = False
        if handle is not None:
            handle.kill()
