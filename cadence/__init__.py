"""Cadence - process-based periodic task scheduler."""

__version__ = "0.1.0"
