"""Shareable: publish files behind short, time-limited download links."""

__version__ = "1.0.0"
