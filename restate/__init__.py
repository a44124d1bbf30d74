"""Restate: declarative HTTP gateway for home automation devices."""

__version__ = "0.1.0"
