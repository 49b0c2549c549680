"""Utility modules for the application."""
from eonchat.utils.logger import (
    safe_print,
    safe_repr,
    setup_logging
)
from eonchat.utils.activity import (
    build_activity_histogram,
    format_hour,
    get_activity_report
)

__all__ = [
    'safe_print',
    'safe_repr',
    'setup_logging',
    'build_activity_histogram',
    'format_hour',
    'get_activity_report'
]
