"""Survivor pool pick-lock and standings engine."""

__version__ = "0.1.0"
