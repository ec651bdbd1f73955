# loudbeat

Loudness analysis and beat synthesis for audio. Results are sent as OSC
messages over UDP.

loudbeat collects audio samples into blocks of 256. It runs a Hann-windowed
FFT over each block and averages the magnitudes in a chosen frequency band.
The result becomes a single loudness level between 0 and 1. That level is
shaped onto an input range and smoothed with a moving average. A decay tail
then stops it from falling faster than a set rate.

A `BeatSynthesizer` takes beats you feed it and derives a clock from them. The
clock runs at a power-of-two multiple or division of the input beats.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Command line

```
loudbeat FILE.wav [--host HOST] [--port PORT] [--block-size N] [--verbose]
```

The command reads a PCM WAV file (8, 16, 24 or 32 bit) and uses its first
channel. It feeds the samples through the loudness analyser in blocks of
`--block-size` samples, 512 by default. It analyses at most one FFT block per
audio block.

With `--host`, messages go to that host over UDP on `--port`, 9000 by
default:

- `/audio "fileStopped"`, `/audio "filePlaying"` and `/audio "fileStopped"`
  again, as the file transport stops, plays and reaches the end.
- `/audio "loudness" 0 <float>` for each level that differs from the last one
  sent.

Without `--host` nothing is sent. When it finishes, the command prints the
number of samples, the sample rate, the number of loudness levels and the
peak level. `--verbose` also prints debug messages.

The exit status is 0 on success. It is 1 when the file cannot be read or the
host cannot be resolved. It is 2 for a non-positive block size or an invalid
port.

## Library use

- `loudbeat.loudness`:
  - `calculate_loudness` maps FFT gains onto 0..1, where a gain of 25 is 1.
  - `MovingAverage` has a period clamped to 1..32.
  - `TailOff` has a decay coefficient clamped to 0..0.9999.
  - `ValueShaper` remaps values and clamps them to 0..1.
- `loudbeat.analyser`:
  - `LoudnessAnalyser` takes samples through `push_sample` and returns a level
    from `process()`, or `None` when no block is waiting.
  - `AnalyserSettings` adjusts the frequency band, input range, decay length,
    window size (1 to 7) and process rate (5 to 70 Hz) within their allowed
    ranges.
  - `ValueHistory` keeps the most recent levels, newest first.
  - `LoudnessReporter` wires an analyser, its settings and a history to a
    sender, and sends only levels that changed.
- `loudbeat.osc`:
  - `OSCMessage` with `encode()`, and `decode_message`. These handle string,
    int32 and float32 arguments.
  - `UDPOSCClient` has `connect`, `disconnect` and `send`, and can be used as
    a context manager.
  - `AvvaOSCSender` builds the loudness, file-state and
    `/clock "millisPerBeat" <float>` messages.
- `loudbeat.synthesizer`:
  - `BeatSynthesizer.beat(period)` handles an input beat.
  - `poll()` emits the scheduled beats that are due.
  - `step_up`, `step_down` and `select_multiple` choose the multiple, which
    takes effect at the next input beat.
  - Synthesized beats are reported through `on_synthesized_beat`.
- `loudbeat.flash`: `FlashBox`, a brightness and colour that fade from white
  to grey over a flash's duration.
- `loudbeat.transport`: `AudioSource` and `TransportState`, the file-player
  transport state machine. It covers play/pause and stop controls, a
  sample-rate check and block capture with optional muting.
- `loudbeat.logger`: `StdoutLogger`, `MultiLogger` and `LogBuffer`.
  `LogBuffer` keeps recent timestamped lines, newest first, and can be paused.
- `loudbeat.whitenoise`: `Oscillator`, white noise at half gain looped from a
  cached table. It is handy for feeding the analyser.

```python
import numpy as np
from loudbeat.analyser import LoudnessAnalyser
from loudbeat.whitenoise import Oscillator

levels = []
analyser = LoudnessAnalyser(levels.append, 50, 0.02, 0.13, 2, 0.8)

block = np.zeros((1, 512))
oscillator = Oscillator(seed=1)
for _ in range(10):
    oscillator.process(block)
    for sample in block[0]:
        analyser.push_sample(float(sample))
    analyser.process()
```

## What it does not do

loudbeat does not capture audio from sound devices or play audio. The command
only reads WAV files. It does not detect beats in audio: `BeatSynthesizer`
needs the beat periods to be supplied by the caller. There is no graphical
interface. The settings, history, flash and transport classes hold state for
a front end to display, but none is included.