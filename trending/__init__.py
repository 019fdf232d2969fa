"""Trending topic detection and entity resolution."""

__version__ = "1.0.0"
