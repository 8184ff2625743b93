"""Serenity: personalization and intervention engine for a mental-health companion."""

__version__ = "0.1.0"
