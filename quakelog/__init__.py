"""Quake 3 Arena log parsing, game reports, MongoDB storage and an HTTP API for them."""

__version__ = "1.0.0"
__all__ = ["api", "database", "parser", "reporter"]