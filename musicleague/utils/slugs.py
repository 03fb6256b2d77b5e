"""URL-safe slugs for league titles."""

from __future__ import annotations

import re

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def title_to_slug(title: str) -> str:
    """
    Convert a league title to a URL slug.

        "It's A Test!"  -> "its-a-test"
        " -Hello- "     -> "hello"
    """
    slug = _DISALLOWED.sub("", title.lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _DASHES.sub("-", slug)
    return slug.strip("-")


def league_route(category_id: str, title: str) -> str:
    """Path of a league under the read-only API."""
    return f"/v1/leagues/{category_id}/{title_to_slug(title)}"
