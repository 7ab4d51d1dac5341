"""Merge request syncing, change notifications, list filters and terminal rendering helpers."""

__version__ = "0.1.0"