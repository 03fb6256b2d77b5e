"""Shared helpers for the Music League Engine."""

from .slugs import league_route, title_to_slug

__all__ = [
    "league_route",
    "title_to_slug",
]
