"""FFT-based loudness analysis, its adjustable settings and level history."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from loudbeat.loudness import (
    MAX_EXPONENT,
    MIN_EXPONENT,
    MovingAverage,
    TailOff,
    ValueShaper,
    calculate_loudness,
)
from loudbeat.mathutil import jlimit, jmap

FFT_ORDER = 8
FFT_SIZE = 1 << FFT_ORDER

LEVEL_FLOOR = 0.0001

INITIAL_PROCESS_RATE_HZ = 50.0
INITIAL_DECAY_EXPONENT = 0.8
MOVING_AVERAGE_INITIAL_WINDOW = 2
INITIAL_PROCESSING_BAND_LOW = 0.02
INITIAL_PROCESSING_BAND_HIGH = 0.13

DEFAULT_HISTORY_SIZE = 100
MIN_HISTORY_SIZE = 2
MAX_HISTORY_SIZE = 500


def _hann_window(size: int) -> np.ndarray:
    """Hann window normalised so that its samples sum to ``size``."""
    table = 0.5 - 0.5 * np.cos(2.0 * np.pi * np.arange(size) / (size - 1))
    total = table.sum()
    if total > 0:
        table *= size / total
    return table


class LoudnessAnalyser:
    """Turns a stream of samples into loudness levels between 0 and 1.

    Samples are collected into blocks of ``FFT_SIZE``. A completed block is
    held until :meth:`process` consumes it; blocks completed meanwhile are
    dropped. ``process`` is meant to be called ``process_rate`` times a second.
    """

    def __init__(
        self,
        on_loudness_result: Callable[[float], None] | None,
        process_rate: float,
        band_low: float,
        band_high: float,
        moving_average_window: int,
        decay_exponent: float,
    ) -> None:
        self.on_loudness_result = on_loudness_result
        self.process_rate = process_rate
        self.band_low = band_low
        self.band_high = band_high
        self.value_shaper = ValueShaper(0.0, 1.0, 0.0, 1.0)
        self.moving_average = MovingAverage(moving_average_window)
        self.decay = TailOff(decay_exponent)

        self._window = _hann_window(FFT_SIZE)
        self._fifo = np.zeros(FFT_SIZE, dtype=np.float64)
        self._fifo_index = 0
        self._block = np.zeros(FFT_SIZE, dtype=np.float64)
        self._block_ready = False

    @property
    def process_rate(self) -> float:
        """How many times a second :meth:`process` is expected to run."""
        return self._process_rate

    @process_rate.setter
    def process_rate(self, hz: float) -> None:
        if hz <= 0:
            raise ValueError(f"process rate must be positive, got {hz}")
        self._process_rate = hz

    @property
    def process_interval(self) -> float:
        """Seconds between calls to :meth:`process`."""
        return 1.0 / self._process_rate

    @property
    def block_ready(self) -> bool:
        """Whether a full block is waiting to be processed."""
        return self._block_ready

    def push_sample(self, sample: float) -> None:
        """Add one sample to the collecting block."""
        if self._fifo_index == FFT_SIZE:
            if not self._block_ready:
                self._block[:] = self._fifo
                self._block_ready = True
            self._fifo_index = 0
        self._fifo[self._fifo_index] = sample
        self._fifo_index += 1

    def process(self) -> float | None:
        """Analyse the waiting block, report and return its level.

        Returns ``None`` when no block is waiting.
        """
        if not self._block_ready:
            return None
        magnitudes = np.abs(np.fft.fft(self._block * self._window))
        level = self._calculate_level(magnitudes)
        if self.on_loudness_result is not None:
            self.on_loudness_result(level)
        self._block_ready = False
        return level

    def _calculate_level(self, magnitudes: np.ndarray) -> float:
        max_index = FFT_SIZE // 2
        low = int(max_index * self.band_low)
        high = int(max_index * self.band_high)
        band = magnitudes[low:high]
        level = calculate_loudness(band.tolist()) if band.size else 0.0
        level = self.value_shaper.shape(level)
        self.moving_average.add(level)
        level = self.decay.apply(self.moving_average.average())
        return 0.0 if level < LEVEL_FLOOR else float(level)


class ValueHistory:
    """Ring of recent levels; ``levels()`` lists them newest first."""

    def __init__(self, size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._history = [0.0] * MAX_HISTORY_SIZE
        self._latest = 0
        self._size = DEFAULT_HISTORY_SIZE
        self.size = size

    @property
    def size(self) -> int:
        """Number of levels shown, between 2 and 500."""
        return self._size

    @size.setter
    def size(self, value: int) -> None:
        value = int(value)
        if not MIN_HISTORY_SIZE <= value <= MAX_HISTORY_SIZE:
            raise ValueError(
                f"history size must be in {MIN_HISTORY_SIZE}..{MAX_HISTORY_SIZE},"
                f" got {value}"
            )
        self._size = value

    def add_level(self, level: float) -> None:
        """Record the newest level."""
        self._latest = (self._latest + 1) % self._size
        self._history[self._latest] = level

    def levels(self) -> list[float]:
        """The ``size`` most recent slots, newest first."""
        size, latest = self._size, self._latest
        return [self._history[(size + latest - i) % size] for i in range(size)]


@dataclass(frozen=True)
class SliderRange:
    """Bounds of an adjustable setting, with an optional step."""

    minimum: float
    maximum: float
    interval: float = 0.0

    def constrain(self, value: float) -> float:
        """Clamp ``value`` into range, snapping it to the step if there is one."""
        if self.interval > 0:
            steps = round((value - self.minimum) / self.interval)
            value = self.minimum + steps * self.interval
        return jlimit(self.minimum, self.maximum, value)


FREQUENCY_BAND_RANGE = SliderRange(0.0, 1.0)
RANGE_IN_RANGE = SliderRange(-0.1, 1.1)
DECAY_LENGTH_RANGE = SliderRange(MIN_EXPONENT, MAX_EXPONENT)
DECAY_LENGTH_MIDPOINT = jmap(0.90, 0.0, 1.0, MIN_EXPONENT, MAX_EXPONENT)
WINDOW_SIZE_RANGE = SliderRange(1.0, 7.0, 1.0)
PROCESS_RATE_RANGE = SliderRange(5.0, 70.0)


class AnalyserSettings:
    """User-adjustable settings of a :class:`LoudnessAnalyser`.

    Every value is kept within the range its control allows.
    """

    def __init__(self, analyser: LoudnessAnalyser) -> None:
        self.analyser = analyser

    @staticmethod
    def _pair(bounds: SliderRange, low: float, high: float) -> tuple[float, float]:
        low, high = bounds.constrain(low), bounds.constrain(high)
        if low > high:
            raise ValueError(f"low value {low} is above high value {high}")
        return low, high

    def set_frequency_band(self, low: float, high: float) -> None:
        """Set the band, as fractions of the spectrum, that is measured."""
        low, high = self._pair(FREQUENCY_BAND_RANGE, low, high)
        self.analyser.band_low = low
        self.analyser.band_high = high

    def set_range_in(self, low: float, high: float) -> None:
        """Set the input range the shaper stretches onto 0..1."""
        low, high = self._pair(RANGE_IN_RANGE, low, high)
        self.analyser.value_shaper.in_min = low
        self.analyser.value_shaper.in_max = high

    def set_decay_length(self, exponent: float) -> None:
        """Set how slowly the level may fall."""
        value = DECAY_LENGTH_RANGE.constrain(exponent)
        self.analyser.decay.max_decay_coefficient = value

    def set_window_size(self, value: float) -> None:
        """Set the moving-average period, a whole number from 1 to 7."""
        self.analyser.moving_average.period = int(WINDOW_SIZE_RANGE.constrain(value))

    def set_process_rate(self, hz: float) -> None:
        """Set how often blocks are processed, in whole hertz."""
        self.analyser.process_rate = int(PROCESS_RATE_RANGE.constrain(hz))


class LoudnessSender(Protocol):
    def send_loudness(self, loudness: float) -> bool: ...


class LoudnessReporter:
    """Runs a loudness analyser and sends each changed level to ``sender``."""

    def __init__(self, sender: LoudnessSender) -> None:
        self.sender = sender
        self.last_level_sent = -10.0
        self.history = ValueHistory(DEFAULT_HISTORY_SIZE)
        self.analyser = LoudnessAnalyser(
            self.on_level,
            INITIAL_PROCESS_RATE_HZ,
            INITIAL_PROCESSING_BAND_LOW,
            INITIAL_PROCESSING_BAND_HIGH,
            MOVING_AVERAGE_INITIAL_WINDOW,
            INITIAL_DECAY_EXPONENT,
        )
        self.settings = AnalyserSettings(self.analyser)

    def on_level(self, level: float) -> None:
        """Record a level and send it if it differs from the last one sent."""
        self.history.add_level(level)
        if level != self.last_level_sent and self.sender.send_loudness(level):
            self.last_level_sent = level

    def push_sample(self, sample: float) -> None:
        """Feed one sample to the analyser."""
        self.analyser.push_sample(sample)