"""Campaign-based ad creative gallery."""

__version__ = "0.1.0"
