"""Mood-based Spotify playlist generator."""

__version__ = "1.0.0"
