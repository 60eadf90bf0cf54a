"""Childcare pickup log with time-based tariffs."""

__version__ = "1.0.0"
