"""Documentation record extraction with a plugin lifecycle."""

__version__ = "0.1.0"
