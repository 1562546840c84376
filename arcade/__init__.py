"""Tap Arcade: a single-player timed tap session with a web adapter."""

__version__ = "1.0.0"
