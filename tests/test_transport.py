import numpy as np
import pytest

from loudbeat.logger import Logger
from loudbeat.transport import AudioSource, TransportState, format_rates


class RecordingLogger(Logger):
    def __init__(self):
        self.records = []

    def debug(self, message):
        self.records.append(("debug", message))

    def info(self, message):
        self.records.append(("info", message))

    def error(self, message):
        self.records.append(("error", message))

    def messages(self, level):
        return [m for lvl, m in self.records if lvl == level]


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def source(logger):
    return AudioSource(logger)


def test_initial_state(source):
    assert source.state is TransportState.FILE_NOT_LOADED
    assert source.play_pause_enabled is False
    assert source.stop_enabled is False
    assert source.press_play_pause() is False
    assert source.press_stop() is False
    assert source.state is TransportState.FILE_NOT_LOADED


def test_stopped_sets_controls_and_calls_back(source, logger):
    calls = []
    source.on_stopped = lambda: calls.append("stopped")
    source.position = 12.5
    source.change_state(TransportState.STOPPED)
    assert calls == ["stopped"]
    assert source.play_pause_text == "Play"
    assert source.play_pause_enabled is True
    assert source.stop_enabled is False
    assert source.position == 0.0
    assert logger.messages("info") == ["Stopped"]


def test_full_play_pause_stop_cycle(source):
    events = []
    source.on_playing = lambda: events.append("playing")
    source.on_paused = lambda: events.append("paused")
    source.on_stopped = lambda: events.append("stopped")

    source.change_state(TransportState.STOPPED)
    assert source.press_play_pause() is True
    assert source.state is TransportState.STARTING
    assert source.transport_running is True
    assert source.play_pause_enabled is False

    source.transport_changed(True)
    assert source.state is TransportState.PLAYING
    assert source.play_pause_text == "Pause"

    assert source.press_play_pause() is True
    assert source.state is TransportState.PAUSING
    assert source.transport_running is False

    source.transport_changed(False)
    assert source.state is TransportState.PAUSED
    assert source.play_pause_text == "Play"
    assert source.stop_enabled is True

    assert source.press_stop() is True
    assert source.state is TransportState.STOPPED
    assert events == ["stopped", "playing", "paused", "stopped"]


def test_stop_while_playing_goes_through_stopping(source):
    source.change_state(TransportState.STOPPED)
    source.press_play_pause()
    source.transport_changed(True)
    assert source.press_stop() is True
    assert source.state is TransportState.STOPPING
    assert source.stop_enabled is False
    assert source.play_pause_enabled is False
    source.transport_changed(False)
    assert source.state is TransportState.STOPPED


def test_transport_end_while_playing_stops(source):
    source.change_state(TransportState.PLAYING)
    source.transport_changed(False)
    assert source.state is TransportState.STOPPED


def test_same_state_does_nothing(source, logger):
    calls = []
    source.on_playing = lambda: calls.append(1)
    source.change_state(TransportState.PLAYING)
    source.change_state(TransportState.PLAYING)
    assert calls == [1]
    assert logger.messages("info") == ["Playing"]


def test_disabling_file_player_stops_transport(source, logger):
    source.set_file_player_enabled(True)
    assert source.controls_visible is True
    assert "Updated filePlayerEnabled to: 1" in logger.messages("debug")
    source.change_state(TransportState.PLAYING)
    source.set_file_player_enabled(False)
    assert source.state is TransportState.STOPPING
    assert source.controls_visible is False
    assert "Updated filePlayerEnabled to: 0" in logger.messages("debug")


def test_disabling_when_stopped_keeps_state(source):
    source.set_file_player_enabled(True)
    source.change_state(TransportState.STOPPED)
    source.set_file_player_enabled(False)
    assert source.state is TransportState.STOPPED


def test_setting_same_enabled_value_logs_nothing(source, logger):
    source.set_file_player_enabled(False)
    assert logger.records == []
    assert source.state is TransportState.FILE_NOT_LOADED
    source.set_file_player_enabled(True)
    source.set_file_player_enabled(True)
    assert logger.messages("debug") == ["Updated filePlayerEnabled to: 1"]
    assert source.controls_visible is True


def test_format_rates():
    assert format_rates([44100.0, 48000.0]) == "[44100, 48000]"
    assert format_rates([]) == "[]"


def test_check_sample_rate_matching(source, logger):
    assert source.check_sample_rate(44100.0, 44100.0, [44100.0]) is None
    assert logger.messages("error") == []


def test_check_sample_rate_needs_switch(source):
    assert source.check_sample_rate(48000.0, 44100.0, [44100.0, 48000.0]) == 48000.0


def test_check_sample_rate_unsupported(source, logger):
    with pytest.raises(ValueError) as info:
        source.check_sample_rate(96000.0, 44100.0, [44100.0, 48000.0])
    assert format_rates([44100.0, 48000.0]) in str(info.value)
    assert logger.messages("error") == [str(info.value)]


def test_check_sample_rate_no_rates(source):
    with pytest.raises(ValueError, match="does not have any supported sample rates"):
        source.check_sample_rate(48000.0, 44100.0, [])


def test_next_block_copies_and_clears(source):
    left = np.array([0.1, 0.2, 0.3, 0.4])
    right = np.array([0.5, 0.6, 0.7, 0.8])
    frame = source.next_block([left, right], 3)
    np.testing.assert_allclose(frame, [0.1, 0.2, 0.3])
    np.testing.assert_allclose(left, [0.0, 0.0, 0.0, 0.4])
    np.testing.assert_allclose(right, [0.0, 0.0, 0.0, 0.8])
    np.testing.assert_allclose(source.frame, frame)


def test_next_block_monitoring_leaves_buffer(source):
    source.monitor_output = True
    left = np.array([0.1, 0.2])
    frame = source.next_block([left], 2)
    np.testing.assert_allclose(left, [0.1, 0.2])
    np.testing.assert_allclose(frame, left)


def test_next_block_without_input(source, logger):
    frame = source.next_block([], 5)
    assert frame.shape == (5,)
    assert not frame.any()
    assert logger.messages("error") == ["No input channels"]


def test_next_block_file_player_without_channels(source, logger):
    source.set_file_player_enabled(True)
    frame = source.next_block([], 4)
    assert frame.shape == (4,)
    assert logger.messages("error") == ["No channels in buffer to fill"]