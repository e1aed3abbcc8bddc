"""Dither pictures for a six-colour e-paper frame, serve them, and stream them into its driver."""

__version__ = "0.1.0"