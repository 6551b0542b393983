"""Request pacing for the speech endpoint.

Responsibilities:
- Block for the fixed inter-request delay after every fetch.
- Block for the throttling cool-down before a throttled fragment is retried.
- Keep sleeping injectable so pipeline tests never wait for real.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import sleep
from typing import Callable


@dataclass(slots=True)
class RequestPacer:
    """Fixed-interval pacer used between speech requests."""

    request_delay_seconds: float = 8.0
    throttle_cooldown_seconds: float = 300.0
    sleeper: Callable[[float], None] = sleep

    def pause(self) -> None:
        """Block for the inter-request delay."""

        self._sleep(self.request_delay_seconds)

    def cool_down(self) -> None:
        """Block for the throttling cool-down."""

        self._sleep(self.throttle_cooldown_seconds)

    def _sleep(self, seconds: float) -> None:
        """Sleep for a positive duration."""

        if seconds > 0.0:
            self.sleeper(seconds)
