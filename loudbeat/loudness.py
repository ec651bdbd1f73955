"""Building blocks of the loudness level: averaging, smoothing and shaping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from loudbeat.mathutil import jlimit, jmap

MAX_WINDOW = 32


def calculate_loudness(data: Iterable[float]) -> float:
    """Average FFT gain of ``data`` put on a linear 0..1 scale (gain 25 is 1)."""
    levels = [jmap(gain, 0.0, 25.0, 0.0, 1.0) for gain in data]
    if not levels:
        raise ValueError("cannot calculate loudness of no data")
    return sum(levels) / len(levels)


def _clamp_period(period: int) -> int:
    return max(1, min(MAX_WINDOW, int(period)))


class MovingAverage:
    """Moving average over a ring of ``MAX_WINDOW`` values.

    The period is clamped into ``1..MAX_WINDOW``.
    """

    def __init__(self, period: int) -> None:
        self._window = [0.0] * MAX_WINDOW
        self._index = 0
        self._period = _clamp_period(period)

    @property
    def period(self) -> int:
        return self._period

    @period.setter
    def period(self, value: int) -> None:
        self._period = _clamp_period(value)

    def add(self, value: float) -> None:
        """Store a new value in the ring."""
        self._index = (self._index + 1) % MAX_WINDOW
        self._window[self._index] = value

    def average(self) -> float:
        """Average of the ``period`` slots preceding the write position.

        Positions before the start wrap around within the period.
        """
        index, period = self._index, self._period
        total = sum(
            self._window[index - k if index >= k else index - k + period]
            for k in range(1, period + 1)
        )
        return total / period


MAX_EXPONENT = 0.9999
MIN_EXPONENT = 0.0


class TailOff:
    """Lets a value rise at once but fall no faster than a decay coefficient.

    With a coefficient of 0.9 and a previous value of 1.0, ``apply(2.0)``
    gives 2.0 and ``apply(0.5)`` gives 0.9.
    """

    max_exponent = MAX_EXPONENT
    min_exponent = MIN_EXPONENT

    def __init__(self, max_decay_coefficient: float) -> None:
        self._exponent = MIN_EXPONENT
        self._previous = 0.0
        self.max_decay_coefficient = max_decay_coefficient

    @property
    def max_decay_coefficient(self) -> float:
        return self._exponent

    @max_decay_coefficient.setter
    def max_decay_coefficient(self, value: float) -> None:
        self._exponent = jlimit(MIN_EXPONENT, MAX_EXPONENT, value)

    def apply(self, value: float) -> float:
        """Return the larger of ``value`` and the decayed previous output."""
        self._previous = max(value, self._previous * self._exponent)
        return self._previous


@dataclass
class ValueShaper:
    """Maps an input range onto an output range, clamped to 0..1."""

    in_min: float
    in_max: float
    out_min: float
    out_max: float

    def shape(self, value: float) -> float:
        if self.in_min == self.in_max:
            # An empty input range acts as a threshold.
            edge = self.out_max if value > self.in_min else self.out_min
            return jlimit(0.0, 1.0, edge)
        mapped = jmap(value, self.in_min, self.in_max, self.out_min, self.out_max)
        return jlimit(0.0, 1.0, mapped)