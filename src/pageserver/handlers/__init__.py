"""
Request handlers.

    pages.py  PageHandler - serves files listed in the RouteIndex
"""

from .pages import PageHandler

__all__ = ["PageHandler"]
