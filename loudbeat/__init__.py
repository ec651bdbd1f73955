"""Loudness analysis, beat synthesis and OSC reporting for audio."""

__version__ = "0.1.0"