"""Command-line interface for Folio.

Commands:
- build: Write the static site into the output directory.
- serve: Render pages per request, with fragment responses for htmx.
- preview: Serve the built output directory.
- new: Create a new post interactively.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .config import FolioError, Section, load_config
from .content import post_path
from .utils import slugify


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """Folio personal site generator."""
    _configure_logging(logging.DEBUG if verbose else logging.INFO)


@cli.command()
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (overrides folio.yaml output_dir)",
)
@click.option("--no-repos", is_flag=True, help="Skip fetching pinned GitHub repositories")
def build(output: Path | None, no_repos: bool):
    """Build the static site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site
    from .github import NullRepositorySource, repository_source_for

    try:
        site = load_config(project_root)
        repositories = NullRepositorySource() if no_repos else repository_source_for(site)
        result = build_site(
            project_root,
            output_dir_override=output,
            repositories=repositories,
            site=site,
        )
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Path: {exc.source_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    except FolioError as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(f"Built {result.post_count} posts into {result.output_dir}")


@cli.command()
@click.option("--port", type=int, required=False, help="Port to serve on (overrides folio.yaml)")
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides folio.yaml ws_port)",
)
@click.option("--reload/--no-reload", "live_reload", default=False, help="Reload browsers on content changes")
@click.option("--no-repos", is_flag=True, help="Skip fetching pinned GitHub repositories")
def serve(port: int | None, ws_port: int | None, live_reload: bool, no_repos: bool):
    """Serve the site, rendering pages per request."""
    project_root = Path.cwd()
    from .github import NullRepositorySource
    from .server import SiteServer

    try:
        server = SiteServer(
            project_root,
            http_port=port,
            ws_port=ws_port,
            repositories=NullRepositorySource() if no_repos else None,
            live_reload=live_reload,
        )
    except FolioError as exc:
        raise click.ClickException(str(exc)) from None
    server.start()


@cli.command()
@click.option("--port", type=int, required=False, help="Port to serve on (overrides folio.yaml)")
@click.option(
    "--dir",
    "directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to serve (defaults to the output directory)",
)
def preview(port: int | None, directory: Path | None):
    """Serve the built static site."""
    from .server import PreviewServer

    try:
        site = load_config(Path.cwd())
    except FolioError as exc:
        raise click.ClickException(str(exc)) from None
    target = directory or site.output_dir
    if not target.is_dir():
        raise click.ClickException(f"No build output at {target}. Run 'folio build' first.")
    PreviewServer(target, port=port or site.port).start()


@cli.command()
def new():
    """Create a new post interactively."""
    project_root = Path.cwd()
    try:
        site = load_config(project_root)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from None

    choice = questionary.select(
        "Select section:",
        choices=[questionary.Choice(site.sections[s].title, value=s.value) for s in Section],
        style=_questionary_style(),
    ).ask()
    if choice is None:
        raise click.Abort()
    section = Section(choice)

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    spoiler = questionary.text(
        "Spoiler (optional):",
        style=_questionary_style(),
    ).ask()
    if spoiler is None:
        raise click.Abort()

    slug = slugify(title)
    target = post_path(site, section, slug)
    if target.exists():
        raise click.ClickException(
            f"Post already exists: {target.relative_to(project_root)}"
        )

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_post_stub(title, date.today(), spoiler.strip()), encoding="utf-8")
    click.echo(f"Created {target.relative_to(project_root)}")


def render_post_stub(title: str, day: date, spoiler: str = "") -> str:
    """Return the initial content of a new post file."""
    frontmatter = {"title": title, "date": day.isoformat()}
    if spoiler:
        frontmatter["spoiler"] = spoiler
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n\n"


def _configure_logging(level: int) -> None:
    """Send folio log records to stderr."""
    logger = logging.getLogger("folio")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
