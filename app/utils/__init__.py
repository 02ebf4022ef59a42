"""Utility helpers for reusable functionality."""

from .datetime import as_app_timezone, get_app_timezone, now_in_app_naive_datetime

__all__ = ["as_app_timezone", "get_app_timezone", "now_in_app_naive_datetime"]
