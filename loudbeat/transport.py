"""File transport state machine and audio block capture for the audio source."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum, auto

import numpy as np

from loudbeat.logger import Logger


class TransportState(Enum):
    """States of the file player's transport."""

    FILE_NOT_LOADED = auto()
    STOPPED = auto()
    STARTING = auto()
    STOPPING = auto()
    PLAYING = auto()
    PAUSING = auto()
    PAUSED = auto()


def format_rates(rates: Sequence[float]) -> str:
    """Sample rates as a bracketed, comma separated list, e.g. ``[44100, 48000]``."""
    return "[" + ", ".join(f"{rate:g}" for rate in rates) + "]"


class AudioSource:
    """Audio input that is either a file player or the device's input.

    Tracks the transport state and the play/pause and stop controls that go
    with it. ``transport_running`` and ``position`` record what the transport
    has been told to do; the transport reports back through
    :meth:`transport_changed`.
    """

    def __init__(self, logger: Logger) -> None:
        self.logger = logger
        self.state = TransportState.FILE_NOT_LOADED
        self.file_player_enabled = False
        self.controls_visible = False
        self.monitor_output = False

        self.on_playing: Callable[[], None] | None = None
        self.on_paused: Callable[[], None] | None = None
        self.on_stopped: Callable[[], None] | None = None

        self.play_pause_text = "Play"
        self.play_pause_enabled = False
        self.stop_enabled = False
        self._play_pause_target: TransportState | None = None
        self._stop_target: TransportState | None = None

        self.transport_running = False
        self.position = 0.0
        self._frame = np.zeros(0, dtype=np.float64)

    @property
    def frame(self) -> np.ndarray:
        """Samples of the last block processed."""
        return self._frame

    def set_file_player_enabled(self, enabled: bool) -> None:
        """Switch between the file player and the device input."""
        enabled = bool(enabled)
        if enabled == self.file_player_enabled:
            return
        self.file_player_enabled = enabled
        self.logger.debug(f"Updated filePlayerEnabled to: {int(enabled)}")
        if not enabled and self.state is not TransportState.STOPPED:
            self.change_state(TransportState.STOPPING)
        self.controls_visible = enabled

    def change_state(self, new_state: TransportState) -> None:
        """Move the transport to ``new_state`` and update the controls."""
        if new_state is self.state:
            return
        self.state = new_state

        if new_state is TransportState.STOPPED:
            self.logger.info("Stopped")
            self._notify(self.on_stopped)
            self.play_pause_text = "Play"
            self.play_pause_enabled = True
            self._play_pause_target = TransportState.STARTING
            self.stop_enabled = False
            self.position = 0.0
        elif new_state is TransportState.PAUSED:
            self.logger.info("Paused")
            self._notify(self.on_paused)
            self.play_pause_text = "Play"
            self.play_pause_enabled = True
            self._play_pause_target = TransportState.STARTING
            self.stop_enabled = True
            self._stop_target = TransportState.STOPPED
        elif new_state is TransportState.STARTING:
            self.logger.info("Starting")
            self.play_pause_enabled = False
            self.stop_enabled = True
            self.transport_running = True
        elif new_state is TransportState.PLAYING:
            self.logger.info("Playing")
            self._notify(self.on_playing)
            self.play_pause_text = "Pause"
            self.play_pause_enabled = True
            self._play_pause_target = TransportState.PAUSING
            self.stop_enabled = True
            self._stop_target = TransportState.STOPPING
        elif new_state is TransportState.STOPPING:
            self.logger.info("Stopping")
            self.play_pause_enabled = False
            self.stop_enabled = False
            self.transport_running = False
        elif new_state is TransportState.PAUSING:
            self.logger.info("Pausing")
            self.play_pause_enabled = False
            self.stop_enabled = False
            self.transport_running = False

    @staticmethod
    def _notify(callback: Callable[[], None] | None) -> None:
        if callback is not None:
            callback()

    def transport_changed(self, is_playing: bool) -> None:
        """Handle the transport reporting that it started or stopped."""
        self.logger.debug("Change listener callback triggered")
        if is_playing:
            self.change_state(TransportState.PLAYING)
        elif self.state is TransportState.PAUSING:
            self.change_state(TransportState.PAUSED)
        else:
            # The file reached its end or stopped for another reason.
            self.change_state(TransportState.STOPPED)

    def press_play_pause(self) -> bool:
        """Press the play/pause control; returns whether it was enabled."""
        if not self.play_pause_enabled or self._play_pause_target is None:
            return False
        self.change_state(self._play_pause_target)
        return True

    def press_stop(self) -> bool:
        """Press the stop control; returns whether it was enabled."""
        if not self.stop_enabled or self._stop_target is None:
            return False
        self.change_state(self._stop_target)
        return True

    def check_sample_rate(
        self,
        file_rate: float,
        device_rate: float,
        supported_rates: Sequence[float],
    ) -> float | None:
        """Check a loaded file's sample rate against the audio device.

        Returns ``None`` when the device already runs at the file's rate, or
        the rate the device must be switched to. Raises ``ValueError`` when
        the device cannot run at that rate.
        """
        if device_rate == file_rate:
            self.logger.info(f"File loaded: sampleRate={file_rate:f}")
            return None
        rates = list(supported_rates)
        if not rates:
            message = (
                "Current audio device does not have any supported sample rates:"
                f" fileSampleRate={file_rate:f} supportedSampleRates:"
            )
            self.logger.error(message)
            raise ValueError(message)
        if file_rate not in rates:
            message = (
                "Current audio device does not support file sample rate, try"
                " changing audio device then reloading file:"
                f" fileSampleRate={file_rate:f} supportedSampleRates:"
                + format_rates(rates)
            )
            self.logger.error(message)
            raise ValueError(message)
        return file_rate

    def next_block(
        self, channels: Sequence[np.ndarray], num_samples: int
    ) -> np.ndarray:
        """Capture a block from ``channels`` and return its first channel's samples.

        Without channels the block is silence. Unless ``monitor_output`` is
        set, the channels are cleared in place so nothing is heard.
        """
        if not channels:
            if self.file_player_enabled:
                self.logger.error("No channels in buffer to fill")
            else:
                self.logger.error("No input channels")
            self._frame = np.zeros(num_samples, dtype=np.float64)
            return self._frame

        frame = np.asarray(channels[0][:num_samples], dtype=np.float64).copy()
        if not self.monitor_output:
            for channel in channels:
                channel[:num_samples] = 0
        self._frame = frame
        return frame