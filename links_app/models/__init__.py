"""
Database models for the link shortener.

Click counts live on the link row itself; there is no separate analytics store.
"""

from .link import Link

__all__ = ["Link"]
