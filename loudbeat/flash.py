"""A box that flashes white and fades back to grey over a given duration."""

from __future__ import annotations

import time
from collections.abc import Callable

GREY = (0x80, 0x80, 0x80)
WHITE = (0xFF, 0xFF, 0xFF)

RGB = tuple[int, int, int]


def _milliseconds() -> float:
    return time.perf_counter() * 1000.0


def _interpolate(start: RGB, end: RGB, proportion: float) -> RGB:
    r, g, b = (round(a + (z - a) * proportion) for a, z in zip(start, end))
    return (r, g, b)


class FlashBox:
    """Tracks a fading flash; ``clock`` returns milliseconds.

    Call :meth:`update` regularly; it recomputes brightness and colour.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or _milliseconds
        self.flash_start = 0.0
        self.flash_duration = 0.0
        self.brightness = 0.0
        self.colour: RGB = GREY

    def flash(self, duration: float) -> None:
        """Start a flash lasting ``duration`` milliseconds."""
        self.flash_start = self._clock()
        self.flash_duration = float(duration)
        self.brightness = 1.0

    def update(self) -> bool:
        """Advance the fade; returns whether the colour changed and needs repainting."""
        if self.brightness == 0:
            return False
        elapsed = self._clock() - self.flash_start
        if self.flash_duration <= 0 or elapsed > self.flash_duration:
            self.brightness = 0.0
            return False
        self.brightness = 1.0 - elapsed / self.flash_duration
        self.colour = _interpolate(GREY, WHITE, self.brightness)
        return True