"""Content processing for Folio.

This module discovers post directories inside each section, reads their
``index.md`` files and builds Post objects from them.

Key classes:
- Post: Immutable dataclass for one rendered post.
- SectionScanner: Finds post directories of a section and reads their files.
- PostBuilder: Turns raw file bytes into a Post.

Key functions:
- load_section_posts: Scan, build and aggregate one section.
- load_all_posts: Same for every section.
- find_post: Look up a post by section and slug.

Failures are absorbed at the smallest granularity: a section directory that
cannot be listed yields no posts, a post that cannot be read is skipped.
Both are logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .collections import PostCollection
from .config import FolioError, Section, SiteConfig
from .extractors import default_metadata_extractor
from .protocols import ContentRenderer, MetadataExtractor
from .renderers import default_renderer
from .utils import is_hidden

logger = logging.getLogger(__name__)

CONTENT_FILENAME = "index.md"


class PostNotFoundError(FolioError, LookupError):
    """Requested section or post does not exist."""


class UnknownSectionError(PostNotFoundError):
    """Requested section is not one of the configured sections."""


@dataclass(frozen=True)
class Post:
    """A rendered post.

    Attributes:
        slug: Directory name of the post, unique within its section.
        title: Post title.
        date: Publication date (timezone aware).
        spoiler: Optional one-line summary.
        content: Rendered HTML.
        section: Section the post belongs to.
    """

    slug: str
    title: str
    date: datetime
    spoiler: str | None
    content: str
    section: Section

    @property
    def url(self) -> str:
        return f"/{self.section.value}/{self.slug}"


@dataclass(frozen=True)
class RawPost:
    """Unparsed content of a post file."""

    slug: str
    data: bytes


def coerce_section(value: Section | str) -> Section:
    """Convert a section name to a Section.

    Raises:
        UnknownSectionError: If the name is not a known section.
    """
    if isinstance(value, Section):
        return value
    try:
        return Section(value)
    except ValueError:
        raise UnknownSectionError(f"Unknown section: {value}") from None


class SectionScanner:
    """Finds post directories in a section and reads their content files.

    Attributes:
        site: Site configuration providing section directories.
    """

    def __init__(self, site: SiteConfig):
        self.site = site

    def scan(self, section: Section | str) -> list[RawPost]:
        """Read every post of a section.

        Args:
            section: Section to scan.

        Returns:
            Raw posts in no particular order. Empty if the section
            directory is missing or cannot be listed.
        """
        section = coerce_section(section)
        section_dir = self.site.section_dir(section)
        try:
            entries = list(section_dir.iterdir())
        except OSError as exc:
            logger.warning("Cannot read section %s at %s: %s", section, section_dir, exc)
            return []

        raw_posts: list[RawPost] = []
        for entry in entries:
            if is_hidden(entry.name) or not entry.is_dir():
                continue
            path = entry / CONTENT_FILENAME
            try:
                data = path.read_bytes()
            except OSError as exc:
                logger.warning("Skipping %s/%s: %s", section, entry.name, exc)
                continue
            raw_posts.append(RawPost(slug=entry.name, data=data))
        return raw_posts


class PostBuilder:
    """Builds Post objects from raw post files.

    Attributes:
        metadata_extractor: Front-matter extractor.
        renderer: Markdown renderer.
    """

    def __init__(
        self,
        metadata_extractor: MetadataExtractor | None = None,
        renderer: ContentRenderer | None = None,
    ):
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self.renderer = renderer or default_renderer

    def build(self, section: Section, raw: RawPost) -> Post:
        """Build a Post from a raw post file.

        Args:
            section: Section the post belongs to.
            raw: Slug and file bytes.

        Returns:
            Post object.

        Raises:
            UnicodeDecodeError: If the file is not valid UTF-8.
        """
        text = raw.data.decode("utf-8-sig")
        metadata = self.metadata_extractor.extract(text)
        if metadata.date_is_fallback:
            logger.debug("%s/%s has no usable date; using current time", section, raw.slug)
        return Post(
            slug=raw.slug,
            title=metadata.title,
            date=metadata.date,
            spoiler=metadata.spoiler,
            content=self.renderer.render(metadata.body),
            section=section,
        )


def load_section_posts(
    section: Section | str,
    site: SiteConfig,
    builder: PostBuilder | None = None,
) -> PostCollection:
    """Load all posts of a section, newest first.

    Args:
        section: Section to load.
        site: Site configuration.
        builder: Optional custom post builder.

    Returns:
        PostCollection of successfully built posts.
    """
    section = coerce_section(section)
    builder = builder or PostBuilder()
    posts: list[Post] = []
    for raw in SectionScanner(site).scan(section):
        try:
            posts.append(builder.build(section, raw))
        except ValueError as exc:  # includes UnicodeDecodeError
            logger.warning("Skipping %s/%s: %s", section, raw.slug, exc)
    return PostCollection(posts)


def load_all_posts(
    site: SiteConfig, builder: PostBuilder | None = None
) -> dict[Section, PostCollection]:
    """Load posts of every section.

    Args:
        site: Site configuration.
        builder: Optional custom post builder.

    Returns:
        Mapping with an entry for every section, possibly empty.
    """
    builder = builder or PostBuilder()
    return {section: load_section_posts(section, site, builder) for section in Section}


def find_post(
    posts_by_section: dict[Section, PostCollection],
    section: Section | str,
    slug: str,
) -> Post:
    """Look up a post by section and slug.

    Raises:
        PostNotFoundError: If the section or the slug does not exist.
    """
    section = coerce_section(section)
    post = posts_by_section.get(section, PostCollection()).get(slug)
    if post is None:
        raise PostNotFoundError(f"No post {section}/{slug}")
    return post


def post_path(site: SiteConfig, section: Section, slug: str) -> Path:
    """Return the content file path of a post."""
    return site.section_dir(section) / slug / CONTENT_FILENAME
