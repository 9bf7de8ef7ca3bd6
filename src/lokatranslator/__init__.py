"""Automatic filling of empty Lokalise translations with a Gemini model."""

__version__ = "1.0.0"
