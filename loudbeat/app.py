"""Command line entry: analyse a WAV file's loudness and report it over OSC."""

from __future__ import annotations

import argparse
import wave
from collections.abc import Sequence
from pathlib import Path

import numpy as np

from loudbeat.analyser import LoudnessReporter
from loudbeat.logger import StdoutLogger
from loudbeat.osc import DEFAULT_OSC_PORT, AvvaOSCSender, UDPOSCClient
from loudbeat.transport import AudioSource, TransportState

DEFAULT_BLOCK_SIZE = 512


def _pcm_to_float(raw: bytes, width: int) -> np.ndarray:
    if width == 1:
        return (np.frombuffer(raw, dtype=np.uint8).astype(np.float64) - 128.0) / 128.0
    if width == 2:
        return np.frombuffer(raw, dtype="<i2").astype(np.float64) / 32768.0
    if width == 3:
        triples = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        values = triples[:, 0] | (triples[:, 1] << 8) | (triples[:, 2] << 16)
        values = np.where(values >= 1 << 23, values - (1 << 24), values)
        return values.astype(np.float64) / float(1 << 23)
    if width == 4:
        return np.frombuffer(raw, dtype="<i4").astype(np.float64) / float(1 << 31)
    raise ValueError(f"unsupported sample width: {width} bytes")


def read_wav(path: str | Path) -> tuple[np.ndarray, int]:
    """Read a PCM WAV file; returns its first channel as floats in [-1, 1) and its rate."""
    try:
        with wave.open(str(path), "rb") as reader:
            channels = reader.getnchannels()
            width = reader.getsampwidth()
            rate = reader.getframerate()
            raw = reader.readframes(reader.getnframes())
    except (wave.Error, EOFError) as exc:
        raise ValueError(f"not a readable PCM WAV file: {path}: {exc}") from exc
    samples = _pcm_to_float(raw, width)
    usable = len(samples) - len(samples) % channels
    return samples[:usable].reshape(-1, channels)[:, 0].copy(), rate


def analyse_samples(
    samples: Sequence[float] | np.ndarray,
    reporter: LoudnessReporter,
    block_size: int = DEFAULT_BLOCK_SIZE,
) -> list[float]:
    """Feed ``samples`` to ``reporter`` block by block, processing after each block.

    Returns the loudness levels produced, in order.
    """
    if block_size <= 0:
        raise ValueError(f"block size must be positive, got {block_size}")
    data = np.asarray(samples, dtype=np.float64)
    levels: list[float] = []
    for start in range(0, len(data), block_size):
        for sample in data[start : start + block_size]:
            reporter.push_sample(float(sample))
        level = reporter.analyser.process()
        if level is not None:
            levels.append(level)
    return levels


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loudbeat",
        description="Analyse the loudness of a WAV file and send it as OSC messages.",
    )
    parser.add_argument("path", help="PCM WAV file to analyse")
    parser.add_argument("--host", help="host to send OSC messages to")
    parser.add_argument(
        "--port", type=int, default=DEFAULT_OSC_PORT, help="UDP port of the OSC host"
    )
    parser.add_argument(
        "--block-size",
        type=int,
        default=DEFAULT_BLOCK_SIZE,
        help="samples per audio block",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="also print debug messages"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the analysis; returns the process exit status."""
    args = _parser().parse_args(argv)
    logger = StdoutLogger(args.verbose)

    if args.block_size <= 0:
        logger.error(f"Block size must be positive, got {args.block_size}")
        return 2

    try:
        samples, rate = read_wav(args.path)
    except (OSError, ValueError) as exc:
        logger.error(f"Could not read {args.path}: {exc}")
        return 1

    try:
        client = UDPOSCClient(logger, args.port)
    except ValueError as exc:
        logger.error(str(exc))
        return 2

    with client:
        if args.host and not client.connect(args.host):
            return 1

        sender = AvvaOSCSender(client)
        reporter = LoudnessReporter(sender)

        source = AudioSource(logger)
        source.on_playing = sender.send_file_playing
        source.on_paused = sender.send_file_paused
        source.on_stopped = sender.send_file_stopped
        source.monitor_output = True
        source.set_file_player_enabled(True)

        logger.info(f"File loaded: name={args.path} sampleRate={rate}")
        source.change_state(TransportState.STOPPED)
        source.press_play_pause()
        source.transport_changed(True)

        levels: list[float] = []
        for start in range(0, len(samples), args.block_size):
            block = samples[start : start + args.block_size].copy()
            frame = source.next_block([block], len(block))
            levels.extend(analyse_samples(frame, reporter, len(frame)))

        source.transport_changed(False)

    logger.info(
        f"Analysed {len(samples)} samples at {rate} Hz: {len(levels)} loudness"
        f" levels, peak {max(levels, default=0.0):.4f}"
    )
    return 0