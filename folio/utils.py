"""Utility functions for Folio.

Key functions:
    slugify: Convert a title to a URL slug.
    parse_date: Parse ISO-8601 style date strings.
    format_short_date: "Jan 1, 2024" style dates for listings.
    format_long_date: "January 1, 2024" style dates for post pages.
    is_hidden: Check for dot-prefixed names.
    join_root_url: Join a base URL with a path.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from datetime import datetime, timezone
from pathlib import Path

_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def slugify(name: str) -> str:
    """Convert a title to a slug.

    Args:
        name: Free-form title.

    Returns:
        Lowercase, hyphen separated slug, or "untitled" when nothing is left.

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", name)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "untitled"


def parse_date(value: str) -> datetime | None:
    """Parse a date or datetime string.

    Accepts ``YYYY-MM-DD``, ISO-8601 datetimes and a trailing ``Z``.
    Naive results are taken as UTC.

    Args:
        value: Date string.

    Returns:
        Timezone-aware datetime, or None if the string is not a date.

    Examples:
        >>> parse_date("2024-01-01")
        datetime.datetime(2024, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_short_date(value: datetime) -> str:
    """Format a date for listings, e.g. "Jan 1, 2024"."""
    return f"{_MONTHS[value.month - 1][:3]} {value.day}, {value.year}"


def format_long_date(value: datetime) -> str:
    """Format a date for post pages, e.g. "January 1, 2024"."""
    return f"{_MONTHS[value.month - 1]} {value.day}, {value.year}"


def is_hidden(name: str) -> bool:
    """Check whether a file or directory name is hidden (dot-prefixed)."""
    return name.startswith(".")


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Args:
        root_url: Base URL (e.g., https://example.com/blog).
        path: Path beginning with or without a leading slash.

    Returns:
        Combined URL with proper slash handling.

    Examples:
        >>> join_root_url('https://example.com', '/about')
        'https://example.com/about'

        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path))
    path.mkdir(parents=True, exist_ok=True)
