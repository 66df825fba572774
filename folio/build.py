"""Static site generation for Folio.

Writes the index page, one page per post, a 404 page and the passthrough
static files into the output directory.

Key functions:
- build_site: Build the whole site.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from .collections import PostCollection
from .config import FolioError, Section, SiteConfig, load_config
from .content import load_all_posts
from .github import NullRepositorySource
from .protocols import RepositorySource
from .templates import PageComposer
from .utils import ensure_clean_dir

logger = logging.getLogger(__name__)


class BuildError(FolioError):
    """Error during site build with file context.

    Attributes:
        source_path: Path that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts_by_section: Posts that were rendered, per section.
        output_dir: Directory where the site was built.
        pages_written: Paths of the HTML files written.
    """

    posts_by_section: dict[Section, PostCollection]
    output_dir: Path
    pages_written: list[Path]

    @property
    def post_count(self) -> int:
        return sum(len(posts) for posts in self.posts_by_section.values())


def build_site(
    project_root: Path,
    output_dir_override: Path | None = None,
    clean_output: bool = True,
    repositories: RepositorySource | None = None,
    site: SiteConfig | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        output_dir_override: Optional path to write to instead of the configured output_dir.
        clean_output: Whether to wipe the output directory before building.
        repositories: Source of the projects listing; none are listed when omitted.
        site: Preloaded site configuration.

    Returns:
        BuildResult with the rendered posts and written pages.

    Raises:
        BuildError: If the output cannot be written.
    """
    site = site or load_config(project_root)
    repositories = repositories or NullRepositorySource()
    output_dir = output_dir_override or site.output_dir

    try:
        if clean_output:
            ensure_clean_dir(output_dir)
        else:
            output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise BuildError(output_dir, f"Cannot prepare output directory: {exc}", exc) from exc

    posts_by_section = load_all_posts(site)
    for section, posts in posts_by_section.items():
        logger.info("Found %d %s", len(posts), section)

    composer = PageComposer(site)
    repos = repositories.get_top_repositories(site.repo_limit)
    written: list[Path] = []

    written.append(
        _write_page(output_dir / "index.html", composer.index_page(posts_by_section, repos))
    )
    for section, posts in posts_by_section.items():
        for post in posts:
            target = output_dir / section.value / post.slug / "index.html"
            written.append(_write_page(target, composer.post_page(post)))
            logger.debug("Generated %s/%s/index.html", section, post.slug)
    written.append(_write_page(output_dir / "404.html", composer.not_found_page()))

    _copy_static(site.static_dir, output_dir)
    return BuildResult(
        posts_by_section=posts_by_section,
        output_dir=output_dir,
        pages_written=written,
    )


def _write_page(path: Path, rendered: str) -> Path:
    """Write a rendered page, creating parent directories."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(rendered, encoding="utf-8")
    except OSError as exc:
        raise BuildError(path, f"Cannot write page: {exc}", exc) from exc
    return path


def _copy_static(static_dir: Path, output_dir: Path) -> None:
    """Copy passthrough static files into the output directory.

    Args:
        static_dir: Directory of static files; skipped when missing.
        output_dir: Build output directory.
    """
    if not static_dir.is_dir():
        return
    for src in sorted(static_dir.rglob("*")):
        if src.is_dir():
            continue
        rel = src.relative_to(static_dir)
        dest = output_dir / rel
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
        except OSError as exc:
            raise BuildError(src, f"Cannot copy static file: {exc}", exc) from exc
        logger.debug("Copied %s", rel)
