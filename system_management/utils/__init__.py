"""
Utility helpers for the system management app.
"""
from .formatters import format_bytes, parse_bytes, humanize_check_name

__all__ = ['format_bytes', 'parse_bytes', 'humanize_check_name']
