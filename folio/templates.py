"""Page composition for Folio.

This module uses Jinja2 to turn post collections and repository summaries
into HTML. Every page exists in two shapes: a fragment holding only the
inner content (for partial-page updates) and a full document that wraps the
same fragment in the site layout. The layout only adds chrome around the
fragment, so a fragment is always an exact substring of its full page.

Key class:
- PageComposer: Renders index, post, section-list and not-found views.

Escaping: metadata (titles, spoilers, repository fields, site identity) is
escaped by Jinja2 autoescaping. Post HTML is inserted verbatim.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup

from .config import Section, SiteConfig
from .content import Post
from .github import RepoSummary
from .renderers import pygments_css
from .utils import format_long_date, format_short_date, join_root_url

__all__ = ["PageComposer", "THEME_DIR"]

THEME_DIR = Path(__file__).parent / "theme"

HTMX_URL = "https://unpkg.com/htmx.org@1.9.12"

# Index page columns, left to right.
INDEX_COLUMNS: tuple[tuple[Section, ...], ...] = (
    (Section.POSTS,),
    (Section.PROJECTS, Section.TALKS),
)

_CONTACT_LINKS = (
    ("email", "Email", "mailto:{}"),
    ("github", "GitHub", "https://github.com/{}"),
    ("linkedin", "LinkedIn", "https://linkedin.com/in/{}"),
    ("twitter", "Twitter", "https://twitter.com/{}"),
)


def _highlight_css() -> Markup:
    light = pygments_css("default", ".highlight")
    dark = pygments_css("github-dark", "body.dark-theme .highlight")
    return Markup(f"{light}\n{dark}")


class PageComposer:
    """Renders site pages as fragments or full documents.

    Rendering is a pure function of the arguments and the site config;
    nothing is retained between calls.

    Attributes:
        site: Site configuration.
        env: Jinja2 environment over the packaged theme.
    """

    def __init__(self, site: SiteConfig, theme_dir: Path | None = None):
        self.site = site
        self.env = Environment(
            loader=FileSystemLoader(str(theme_dir or THEME_DIR)),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["short_date"] = format_short_date
        self.env.filters["long_date"] = format_long_date
        self.env.globals["site"] = site
        self.env.globals["sections"] = site.sections
        self._highlight_css = _highlight_css()

    # Fragments

    def index_content(
        self,
        posts_by_section: Mapping[Section, Sequence[Post]],
        repos: Sequence[RepoSummary],
    ) -> str:
        """Render the index fragment.

        Args:
            posts_by_section: Posts per section; missing sections render empty.
            repos: Repositories listed in place of the projects section.

        Returns:
            HTML fragment.
        """
        return self.env.get_template("index.html.jinja").render(
            columns=INDEX_COLUMNS,
            posts_by_section=posts_by_section,
            repos=repos,
        )

    def section_list(self, section: Section, posts: Sequence[Post]) -> str:
        """Render only the post lines of one section."""
        return self.env.get_template("section_list.html.jinja").render(
            section=section,
            posts=posts,
            config=self.site.sections[section],
        )

    def post_content(self, post: Post) -> str:
        """Render the post fragment: back link, title, date and body."""
        return self.env.get_template("post.html.jinja").render(
            post=post,
            edit_url=self._edit_url(post),
            share_url=join_root_url(self.site.url, post.url) if self.site.url else "",
        )

    def not_found_content(self, message: str = "Nothing lives here.") -> str:
        return self.env.get_template("not_found.html.jinja").render(message=message)

    # Full documents

    def layout(self, title: str, content: str) -> str:
        """Wrap a fragment in the site layout.

        Args:
            title: Document title.
            content: Fragment HTML, inserted verbatim.

        Returns:
            Full HTML document.
        """
        return self.env.get_template("layout.html.jinja").render(
            title=title,
            content=Markup(content),
            contact_links=self._contact_links(),
            highlight_css=self._highlight_css,
            htmx_url=HTMX_URL,
        )

    def index_page(
        self,
        posts_by_section: Mapping[Section, Sequence[Post]],
        repos: Sequence[RepoSummary],
    ) -> str:
        return self.layout(self.site.name, self.index_content(posts_by_section, repos))

    def post_page(self, post: Post) -> str:
        return self.layout(post.title, self.post_content(post))

    def not_found_page(self, message: str = "Nothing lives here.") -> str:
        return self.layout("Not found", self.not_found_content(message))

    def _edit_url(self, post: Post) -> str:
        user = self.site.github_user
        if not (user and self.site.repository):
            return ""
        path = f"{self.site.sections[post.section].path}/{post.slug}/index.md"
        return f"https://github.com/{user}/{self.site.repository}/edit/main/{path}"

    def _contact_links(self) -> list[dict[str, str]]:
        links = []
        for key, label, pattern in _CONTACT_LINKS:
            handle = self.site.links.get(key)
            if handle:
                links.append({"label": label, "href": pattern.format(handle)})
        return links
