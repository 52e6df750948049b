"""Asteroid impact-consequence calculator and its data-source adapters."""

__version__ = "1.0.0"
