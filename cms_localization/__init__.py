"""Content localization and auto-translation service."""

__version__ = "0.1.0"
