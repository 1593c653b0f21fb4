"""CSV to JSON records conversion service."""

__version__ = "0.1.0"
