"""Persistent user record store served over a small REST API."""

__version__ = "1.0.0"
