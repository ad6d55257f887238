"""Discover local observability agents and describe their data pipelines."""

__version__ = "0.1.0"