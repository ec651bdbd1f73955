import socket

import pytest

from loudbeat.logger import Logger
from loudbeat.osc import (
    AvvaOSCSender,
    OSCMessage,
    OSCSender,
    UDPOSCClient,
    decode_message,
)


class RecordingLogger(Logger):
    def __init__(self):
        self.lines = []

    def debug(self, message):
        self.lines.append(("debug", message))

    def info(self, message):
        self.lines.append(("info", message))

    def error(self, message):
        self.lines.append(("error", message))


class RecordingSender(OSCSender):
    def __init__(self, result=True):
        self.result = result
        self.messages = []

    def send(self, message):
        self.messages.append(message)
        return self.result


def test_encode_wire_bytes():
    message = OSCMessage("/audio", ("filePlaying",))
    assert message.encode() == b"/audio\x00\x00,s\x00\x00filePlaying\x00"


def test_encode_is_multiple_of_four():
    message = OSCMessage("/clock", ("millisPerBeat", 1, 2.5))
    assert len(message.encode()) % 4 == 0


@pytest.mark.parametrize(
    "arguments",
    [(), ("loudness", 0, 0.5), ("a", "bc", "def", "ghij"), (-7, 250.0)],
)
def test_round_trip(arguments):
    message = OSCMessage("/audio", arguments)
    assert decode_message(message.encode()) == message


def test_bad_address_rejected():
    with pytest.raises(ValueError):
        OSCMessage("audio")


def test_bool_argument_rejected():
    with pytest.raises(TypeError):
        OSCMessage("/audio", (True,))


def test_int_out_of_range_rejected():
    with pytest.raises(ValueError):
        OSCMessage("/audio", (2**31,))


def test_decode_malformed():
    with pytest.raises(ValueError):
        decode_message(b"/abc")


def test_decode_bad_tag():
    data = OSCMessage("/x").encode()[:4] + b",q\x00\x00"
    with pytest.raises(ValueError):
        decode_message(data)


def test_with_arguments_appends():
    base = OSCMessage("/audio", ("loudness", 0))
    assert base.with_arguments(0.25).arguments == ("loudness", 0, 0.25)
    assert base.arguments == ("loudness", 0)


def test_avva_loudness_message():
    sender = RecordingSender()
    assert AvvaOSCSender(sender).send_loudness(0.5) is True
    assert sender.messages == [OSCMessage("/audio", ("loudness", 0, 0.5))]


def test_avva_file_messages():
    sender = RecordingSender()
    avva = AvvaOSCSender(sender)
    avva.send_file_playing()
    avva.send_file_paused()
    avva.send_file_stopped()
    assert [m.arguments for m in sender.messages] == [
        ("filePlaying",),
        ("filePaused",),
        ("fileStopped",),
    ]
    assert {m.address for m in sender.messages} == {"/audio"}


def test_avva_clock_message():
    sender = RecordingSender()
    AvvaOSCSender(sender).send_clock_millis_per_beat(500.0)
    assert sender.messages == [OSCMessage("/clock", ("millisPerBeat", 500.0))]


def test_avva_reports_failure():
    assert AvvaOSCSender(RecordingSender(result=False)).send_file_playing() is False


def test_client_not_connected():
    logger = RecordingLogger()
    client = UDPOSCClient(logger)
    assert client.send(OSCMessage("/audio")) is False
    assert logger.lines == [("debug", "Sender not connected")]


def test_client_invalid_port():
    with pytest.raises(ValueError):
        UDPOSCClient(RecordingLogger(), port=0)


def test_client_sends_over_udp():
    receiver = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    receiver.bind(("127.0.0.1", 0))
    receiver.settimeout(2.0)
    port = receiver.getsockname()[1]
    logger = RecordingLogger()
    try:
        with UDPOSCClient(logger, port=port) as client:
            assert client.connect("127.0.0.1") is True
            assert client.connected is True
            message = OSCMessage("/audio", ("loudness", 0, 0.75))
            assert client.send(message) is True
            data, _ = receiver.recvfrom(1024)
            assert decode_message(data) == message
            assert client.disconnect() is True
            assert client.connected is False
    finally:
        receiver.close()
    assert ("info", f"Connected OSC with target 127.0.0.1:{port}") in logger.lines
    assert ("info", "Disconnected OSC") in logger.lines