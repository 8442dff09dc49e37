"""Monitoring building blocks: time types, query values, logging, routing."""

__version__ = "0.1.0"