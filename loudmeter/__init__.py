"""Loudmeter - live microphone loudness metering."""

__version__ = "0.1.0"
