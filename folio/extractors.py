"""Front-matter extraction for Folio.

Splits a post file into its YAML metadata block and markdown body, and
normalizes the metadata a post needs.

Key objects:
- extract_frontmatter: Splits raw text into (mapping, body).
- PostMetadata: Normalized title/date/spoiler plus the body.
- PostMetadataExtractor: Applies defaults and date parsing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable

import yaml

from .utils import parse_date

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)^---\s*(?:\n|$)", re.DOTALL | re.MULTILINE)

DEFAULT_TITLE = "Untitled"


class _FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamps as strings.

    PyYAML raises on date-shaped scalars that are not real dates
    (``2024-02-30``); keeping the text lets date parsing fall back instead.
    """


_FrontmatterLoader.add_constructor(
    "tag:yaml.org,2002:timestamp",
    lambda loader, node: loader.construct_scalar(node),
)


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content).
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.load(match.group(1), Loader=_FrontmatterLoader) or {}
    except (yaml.YAMLError, ValueError):
        return {}, text
    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end() :]


@dataclass(frozen=True)
class PostMetadata:
    """Metadata of a post after defaults are applied.

    Attributes:
        title: Post title, "Untitled" when absent.
        date: Timezone-aware publication date.
        spoiler: Optional one-line summary.
        body: Markdown body without the front-matter block.
        date_is_fallback: True when date was absent or unparsable and
            the current time was used instead.
    """

    title: str
    date: datetime
    spoiler: str | None
    body: str
    date_is_fallback: bool = False


class PostMetadataExtractor:
    """Extracts title, date and spoiler from a post file.

    Attributes:
        clock: Callable returning the current aware datetime.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def extract(self, text: str) -> PostMetadata:
        frontmatter, body = extract_frontmatter(text)

        title = frontmatter.get("title")
        title = str(title).strip() if title is not None else ""

        spoiler = frontmatter.get("spoiler")
        spoiler = str(spoiler).strip() if spoiler is not None else None

        raw_date = frontmatter.get("date")
        parsed = self._coerce_date(raw_date)
        fallback = parsed is None
        if fallback:
            # Missing or unparsable dates fall back to "now".
            if raw_date is not None:
                logger.debug("Unparsable date %r, using current time", raw_date)
            parsed = self.clock()

        return PostMetadata(
            title=title or DEFAULT_TITLE,
            date=parsed,
            spoiler=spoiler or None,
            body=body,
            date_is_fallback=fallback,
        )

    @staticmethod
    def _coerce_date(value: Any) -> datetime | None:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return parse_date(str(value))


default_metadata_extractor = PostMetadataExtractor()
