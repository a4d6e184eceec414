"""Prometheus last-value threshold check."""

__version__ = "0.1.0"
