"""Jittered exponential backoff between acquisition attempts."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import LockSettings


class JitteredBackoff:
    """
    Backoff state for one acquisition call.

    The first attempt runs immediately. After every attempt the delay grows
    as ``delay * 2 + uniform(offset_min, offset_max)`` starting from
    ``base_delay``, so with the defaults the waits are roughly 0.2-0.3s,
    then 0.4-0.7s. The call is exhausted once ``max_retries`` attempts ran.
    """

    def __init__(
        self,
        *,
        base_delay: float,
        offset_min: float,
        offset_max: float,
        max_attempts: int,
        rng: random.Random | None = None,
    ) -> None:
        self._delay = base_delay
        self._offset_min = offset_min
        self._offset_max = offset_max
        self._max_attempts = max_attempts
        self._rng = rng or random.Random()
        self.attempts = 0

    @classmethod
    def from_settings(
        cls, settings: LockSettings, rng: random.Random | None = None
    ) -> JitteredBackoff:
        return cls(
            base_delay=settings.base_delay,
            offset_min=settings.delay_offset_min,
            offset_max=settings.delay_offset_max,
            max_attempts=settings.max_retries,
            rng=rng,
        )

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self._max_attempts

    def record_attempt(self) -> float:
        """Count a finished attempt and return the wait before the next one."""
        self.attempts += 1
        self._delay = self._delay * 2 + self._rng.uniform(
            self._offset_min, self._offset_max
        )
        return self._delay
