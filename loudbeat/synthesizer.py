"""Derives a beat clock from detected beats at a chosen multiple or division."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable

from loudbeat.logger import Logger
from loudbeat.mathutil import ewma, ipow

NEGATIVE_MULTIPLE_COUNT = 3
# Kept at 8 or below: 2**8 - 1 scheduled beats is the most one input beat makes.
POSITIVE_MULTIPLE_COUNT = 6
TOTAL_MULTIPLE_COUNT = POSITIVE_MULTIPLE_COUNT + 1 + NEGATIVE_MULTIPLE_COUNT

INITIAL_MULTIPLE_INDEX = 4
INITIAL_DURATION_PER_SYNTHESIZED_BEAT = 500.0


def _milliseconds() -> float:
    return time.perf_counter() * 1000.0


class BeatSynthesizer:
    """Synthesizes beats from input beats.

    Multiple indices run from 0 to ``TOTAL_MULTIPLE_COUNT - 1``; index
    ``NEGATIVE_MULTIPLE_COUNT`` passes beats through, higher indices add
    ``2**n - 1`` evenly spaced beats after each input beat, lower ones keep
    only every ``2**n``-th beat. A newly selected multiple takes effect at
    the next input beat. ``clock`` returns milliseconds.
    """

    def __init__(
        self,
        logger: Logger,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.logger = logger
        self._clock = clock or _milliseconds
        self.on_synthesized_beat: Callable[[float], None] | None = None
        self.input_beat_count = 0
        self.diff_ewma = 0.0
        self.duration_per_synthesized_beat = INITIAL_DURATION_PER_SYNTHESIZED_BEAT
        self.dirty = False
        self._scheduled: deque[float] = deque()
        self._multiple = 1
        self._multiple_index = INITIAL_MULTIPLE_INDEX
        self._next_multiple_index = INITIAL_MULTIPLE_INDEX
        self._set_multiple_from_index(INITIAL_MULTIPLE_INDEX)

    @property
    def multiple(self) -> int:
        return self._multiple

    @property
    def multiple_index(self) -> int:
        return self._multiple_index

    @property
    def next_multiple_index(self) -> int:
        return self._next_multiple_index

    @property
    def scheduled_beats(self) -> tuple[float, ...]:
        """Times, in clock milliseconds, of beats still to be synthesized."""
        return tuple(self._scheduled)

    def _set_multiple_from_index(self, index: int) -> None:
        self._multiple_index = index
        self._multiple = ipow(2, abs(index - NEGATIVE_MULTIPLE_COUNT))
        self.dirty = True

    def select_multiple(self, index: int) -> None:
        """Choose the multiple to use from the next input beat on."""
        if not 0 <= index < TOTAL_MULTIPLE_COUNT:
            raise ValueError(
                f"multiple index must be in 0..{TOTAL_MULTIPLE_COUNT - 1}, got {index}"
            )
        self._next_multiple_index = index
        self.dirty = True

    def step_up(self) -> None:
        """Select the next higher multiple, if there is one."""
        if self._next_multiple_index < TOTAL_MULTIPLE_COUNT - 1:
            self.select_multiple(self._next_multiple_index + 1)

    def step_down(self) -> None:
        """Select the next lower multiple, if there is one."""
        if self._next_multiple_index > 0:
            self.select_multiple(self._next_multiple_index - 1)

    def beat(self, period: float) -> None:
        """Handle a detected beat; ``period`` is the time since the last one."""
        time_of_beat = self._clock()
        self.input_beat_count += 1
        self.diff_ewma = ewma(self.diff_ewma, float(period), 0.5)

        if self._multiple_index != self._next_multiple_index:
            self._set_multiple_from_index(self._next_multiple_index)

        relative = self._multiple_index - NEGATIVE_MULTIPLE_COUNT
        if relative > 0:
            duration = self.diff_ewma / self._multiple
            self.duration_per_synthesized_beat = duration
            self._synthesized_beat(duration)
            self._scheduled.extend(
                time_of_beat + duration * step for step in range(1, self._multiple)
            )
        elif relative == 0:
            self.duration_per_synthesized_beat = self.diff_ewma
            self._synthesized_beat(self.diff_ewma)
        else:
            self.duration_per_synthesized_beat = self.diff_ewma * self._multiple
            if self.input_beat_count % self._multiple == 0:
                self._synthesized_beat(self.duration_per_synthesized_beat)

        self.dirty = True

    def poll(self) -> int:
        """Emit every scheduled beat that is due; returns how many were."""
        emitted = 0
        while self._scheduled and self._clock() >= self._scheduled[0]:
            self._synthesized_beat(self.duration_per_synthesized_beat)
            self._scheduled.popleft()
            emitted += 1
        return emitted

    def _synthesized_beat(self, duration: float) -> None:
        if self.on_synthesized_beat is not None:
            self.on_synthesized_beat(duration)