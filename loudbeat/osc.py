"""OSC messages, a UDP client for them, and the application's message set."""

from __future__ import annotations

import socket
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Union

from loudbeat.logger import Logger

DEFAULT_OSC_PORT = 9000

OSCArgument = Union[str, int, float]

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def _encode_string(text: str) -> bytes:
    raw = text.encode("utf-8") + b"\x00"
    return raw + b"\x00" * (-len(raw) % 4)


def _encode_argument(value: OSCArgument) -> tuple[str, bytes]:
    if isinstance(value, str):
        return "s", _encode_string(value)
    if isinstance(value, int):
        return "i", struct.pack(">i", value)
    return "f", struct.pack(">f", value)


@dataclass(frozen=True)
class OSCMessage:
    """An OSC message: an address pattern and typed arguments.

    Python ``str`` is sent as an OSC string, ``int`` as int32 and ``float``
    as float32.
    """

    address: str
    arguments: tuple[OSCArgument, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.address.startswith("/"):
            raise ValueError(f"OSC address must start with '/', got {self.address!r}")
        arguments = tuple(self.arguments)
        for value in arguments:
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                raise TypeError(f"unsupported OSC argument: {value!r}")
            if isinstance(value, int) and not _INT32_MIN <= value <= _INT32_MAX:
                raise ValueError(f"integer argument out of int32 range: {value}")
        object.__setattr__(self, "arguments", arguments)

    def with_arguments(self, *arguments: OSCArgument) -> OSCMessage:
        """A copy of this message with ``arguments`` appended."""
        return OSCMessage(self.address, self.arguments + arguments)

    def encode(self) -> bytes:
        """The message in OSC 1.0 wire format."""
        encoded = [_encode_argument(value) for value in self.arguments]
        tags = "," + "".join(tag for tag, _ in encoded)
        return (
            _encode_string(self.address)
            + _encode_string(tags)
            + b"".join(payload for _, payload in encoded)
        )


def _read_string(data: bytes, offset: int) -> tuple[str, int]:
    end = data.find(b"\x00", offset)
    if end < 0:
        raise ValueError("unterminated OSC string")
    text = data[offset:end].decode("utf-8")
    length = end - offset + 1
    next_offset = offset + length + (-length % 4)
    if next_offset > len(data):
        raise ValueError("OSC string padding runs past end of data")
    return text, next_offset


def decode_message(data: bytes) -> OSCMessage:
    """Parse an OSC message from its wire format."""
    if len(data) % 4:
        raise ValueError("OSC message length must be a multiple of 4")
    address, offset = _read_string(data, 0)
    if offset >= len(data):
        return OSCMessage(address)
    tags, offset = _read_string(data, offset)
    if not tags.startswith(","):
        raise ValueError(f"malformed OSC type tag string: {tags!r}")
    arguments: list[OSCArgument] = []
    for tag in tags[1:]:
        if tag == "s":
            text, offset = _read_string(data, offset)
            arguments.append(text)
        elif tag in ("i", "f"):
            if offset + 4 > len(data):
                raise ValueError("OSC argument runs past end of data")
            (value,) = struct.unpack_from(">i" if tag == "i" else ">f", data, offset)
            arguments.append(value)
            offset += 4
        else:
            raise ValueError(f"unsupported OSC type tag: {tag!r}")
    if offset != len(data):
        raise ValueError("trailing bytes after OSC arguments")
    return OSCMessage(address, tuple(arguments))


class OSCSender(ABC):
    """Something that can send an OSC message."""

    @abstractmethod
    def send(self, message: OSCMessage) -> bool:
        """Send ``message``; returns whether it went out."""


class UDPOSCClient(OSCSender):
    """Sends OSC messages over UDP to a host once connected."""

    def __init__(self, logger: Logger, port: int = DEFAULT_OSC_PORT) -> None:
        if not 0 < port <= 65535:
            raise ValueError(f"invalid UDP port: {port}")
        self.logger = logger
        self.port = port
        self._socket: socket.socket | None = None
        self._target: tuple | None = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def connect(self, host: str) -> bool:
        """Resolve ``host`` and prepare to send to it; returns success."""
        target = f"{host}:{self.port}"
        try:
            family, kind, proto, _, address = socket.getaddrinfo(
                host, self.port, type=socket.SOCK_DGRAM
            )[0]
            sock = socket.socket(family, kind, proto)
        except (OSError, UnicodeError, ValueError):
            self.logger.error(f"Error connecting OSC with target {target}")
            return False
        self._close()
        self._socket, self._target = sock, address
        self.logger.info(f"Connected OSC with target {target}")
        return True

    def disconnect(self) -> bool:
        """Stop sending; returns success."""
        self._close()
        self.logger.info("Disconnected OSC")
        return True

    def _close(self) -> None:
        if self._socket is not None:
            self._socket.close()
        self._socket, self._target = None, None

    def send(self, message: OSCMessage) -> bool:
        if self._socket is None:
            self.logger.debug("Sender not connected")
            return False
        payload = message.encode()
        try:
            sent = self._socket.sendto(payload, self._target)
        except OSError as exc:
            self.logger.error(f"Error sending message: {exc}")
            return False
        if sent != len(payload):
            self.logger.error("Error sending message")
            return False
        self.logger.debug("Message sent")
        return True

    def __enter__(self) -> UDPOSCClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._close()


LOUDNESS_TEMPLATE = OSCMessage("/audio", ("loudness", 0))
FILE_PLAYING_MESSAGE = OSCMessage("/audio", ("filePlaying",))
FILE_PAUSED_MESSAGE = OSCMessage("/audio", ("filePaused",))
FILE_STOPPED_MESSAGE = OSCMessage("/audio", ("fileStopped",))
CLOCK_MILLIS_PER_BEAT_TEMPLATE = OSCMessage("/clock", ("millisPerBeat",))


class AvvaOSCSender:
    """Builds the application's OSC messages and sends them through ``sender``."""

    def __init__(self, sender: OSCSender) -> None:
        self.sender = sender

    def send_loudness(self, loudness: float) -> bool:
        return self.sender.send(LOUDNESS_TEMPLATE.with_arguments(float(loudness)))

    def send_file_playing(self) -> bool:
        return self.sender.send(FILE_PLAYING_MESSAGE)

    def send_file_paused(self) -> bool:
        return self.sender.send(FILE_PAUSED_MESSAGE)

    def send_file_stopped(self) -> bool:
        return self.sender.send(FILE_STOPPED_MESSAGE)

    def send_clock_millis_per_beat(self, millis_per_beat: float) -> bool:
        return self.sender.send(
            CLOCK_MILLIS_PER_BEAT_TEMPLATE.with_arguments(float(millis_per_beat))
        )