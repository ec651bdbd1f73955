"""A simple white noise oscillator playing from a precomputed table."""

from __future__ import annotations

import numpy as np

GAIN = 0.5
RESERVED_NUM_SAMPLES = 400_000


class Oscillator:
    """White noise at half gain, looped from a table of cached samples."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = np.random.default_rng(seed)
        self._samples = (self._rng.random(RESERVED_NUM_SAMPLES) * 2.0 - 1.0) * GAIN
        self._position = 0

    @property
    def cached_samples(self) -> np.ndarray:
        """A read-only view of the cached noise table."""
        view = self._samples.view()
        view.flags.writeable = False
        return view

    def process(self, buffer: np.ndarray) -> None:
        """Fill every channel of ``buffer`` (channels × samples) with noise.

        All channels receive the same samples; playback continues from where
        the previous call stopped and wraps at the end of the table.
        """
        count = buffer.shape[-1]
        indices = (self._position + np.arange(count)) % RESERVED_NUM_SAMPLES
        buffer[...] = self._samples[indices]
        self._position = (self._position + count) % RESERVED_NUM_SAMPLES

    def next_sample(self) -> float:
        """A fresh uniform random value in ``[-1, 1)``."""
        return float(self._rng.random() * 2.0 - 1.0)