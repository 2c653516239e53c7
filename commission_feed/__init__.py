"""Live transaction feed for the commission service."""

__version__ = "0.1.0"
