# bookverse/utils/__init__.py
"""
Shared utilities used across the project.
"""

from .datetime_utils import DateTimeUtils

__all__ = ['DateTimeUtils']
