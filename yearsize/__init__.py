"""Summarize disk usage per modification year or month."""

__version__ = "0.1.0"
