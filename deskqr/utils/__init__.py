"""Utility functions for deskqr."""

from .file_utils import ensure_directory, get_timestamp, save_json

__all__ = [
    "ensure_directory",
    "get_timestamp",
    "save_json",
]
