"""Bleenkz: real-time blink counting backend."""

__version__ = "1.0.0"
