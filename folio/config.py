"""Site configuration for Folio.

This module defines the fixed set of content sections and loads the
site-wide configuration from an optional ``folio.yaml`` at the project root.

Key objects:
- Section: Closed enumeration of content sections.
- SectionConfig: Display title and storage directory of one section.
- SECTIONS: Default configuration for every section.
- SiteConfig: Site identity and runtime settings.
- load_config: Reads folio.yaml and applies defaults.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml


class FolioError(Exception):
    """Base class for errors raised by Folio."""


class ConfigError(FolioError):
    """Invalid or incomplete site configuration."""


class Section(str, Enum):
    """Content sections. Values double as URL segments."""

    POSTS = "posts"
    PROJECTS = "projects"
    TALKS = "talks"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SectionConfig:
    """Display configuration for a section.

    Attributes:
        name: Section identifier.
        title: Human-readable title shown in listings.
        path: Directory holding the section's posts, relative to the content root.
    """

    name: str
    title: str
    path: str


SECTIONS: dict[Section, SectionConfig] = {
    Section.POSTS: SectionConfig(name="posts", title="Blog Posts", path="posts"),
    Section.PROJECTS: SectionConfig(name="projects", title="Projects", path="projects"),
    Section.TALKS: SectionConfig(name="talks", title="Talks", path="talks"),
}


def validate_sections(mapping: Mapping[Section, SectionConfig]) -> None:
    """Ensure every section has a display configuration.

    Args:
        mapping: Section configuration mapping to check.

    Raises:
        ConfigError: If a section is missing from the mapping.
    """
    missing = [section.value for section in Section if section not in mapping]
    if missing:
        raise ConfigError(f"Missing configuration for sections: {', '.join(missing)}")


validate_sections(SECTIONS)


DEFAULT_CONFIG: dict[str, Any] = {
    "name": "Folio",
    "title": "Personal site",
    "description": "",
    "url": "",
    "repository": "",
    "links": {},
    "content_dir": ".",
    "output_dir": "dist",
    "static_dir": "public",
    "port": 3000,
    "ws_port": None,
    "repo_limit": 6,
    "repo_cache_seconds": 3600,
    "github_token": None,
    "sections": {},
}


@dataclass
class SiteConfig:
    """Site identity and runtime settings.

    Attributes:
        root: Project root directory.
        name: Site owner name shown in the header.
        title: Short tagline.
        description: Longer tagline.
        url: Absolute base URL of the deployed site, used for share links.
        repository: Name of the source repository, used for edit links.
        links: Contact handles (email, github, linkedin, twitter).
        content_dir: Directory holding the section directories.
        output_dir: Static build output directory.
        static_dir: Directory of passthrough static files.
        port: HTTP port for the server commands.
        ws_port: Websocket port for live reload.
        repo_limit: Number of pinned repositories to show.
        repo_cache_seconds: Validity window of the repository cache.
        github_token: Token for the GitHub API.
        sections: Per-section display configuration.
    """

    root: Path
    name: str = "Folio"
    title: str = "Personal site"
    description: str = ""
    url: str = ""
    repository: str = ""
    links: dict[str, str] = field(default_factory=dict)
    content_dir: Path = Path(".")
    output_dir: Path = Path("dist")
    static_dir: Path = Path("public")
    port: int = 3000
    ws_port: int = 3001
    repo_limit: int = 6
    repo_cache_seconds: float = 3600
    github_token: str | None = None
    sections: dict[Section, SectionConfig] = field(default_factory=lambda: dict(SECTIONS))

    def __post_init__(self) -> None:
        validate_sections(self.sections)

    @property
    def github_user(self) -> str:
        return self.links.get("github", "")

    def section_dir(self, section: Section) -> Path:
        """Return the directory holding a section's posts."""
        return self.content_dir / self.sections[section].path


def load_config(project_root: Path) -> SiteConfig:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        SiteConfig with defaults applied for missing values.

    Raises:
        ConfigError: If the file is malformed or holds invalid values.
    """
    config_path = project_root / "folio.yaml"
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{config_path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: expected a mapping at the top level")
        config.update(loaded)
    return _site_config_from_dict(project_root, config)


def _site_config_from_dict(project_root: Path, config: dict[str, Any]) -> SiteConfig:
    try:
        port = int(config["port"])
        ws_port = int(config["ws_port"]) if config.get("ws_port") else port + 1
        repo_limit = int(config["repo_limit"])
        repo_cache_seconds = float(config["repo_cache_seconds"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric setting: {exc}") from exc

    links = config.get("links") or {}
    if not isinstance(links, dict):
        raise ConfigError("'links' must be a mapping")

    token = os.environ.get("GITHUB_TOKEN") or config.get("github_token")

    return SiteConfig(
        root=project_root,
        name=str(config["name"]),
        title=str(config["title"]),
        description=str(config.get("description") or ""),
        url=str(config.get("url") or "").rstrip("/"),
        repository=str(config.get("repository") or ""),
        links={str(k): str(v) for k, v in links.items() if v},
        content_dir=project_root / str(config["content_dir"]),
        output_dir=project_root / str(config["output_dir"]),
        static_dir=project_root / str(config["static_dir"]),
        port=port,
        ws_port=ws_port,
        repo_limit=repo_limit,
        repo_cache_seconds=repo_cache_seconds,
        github_token=token or None,
        sections=_section_overrides(config.get("sections") or {}),
    )


def _section_overrides(overrides: Any) -> dict[Section, SectionConfig]:
    """Apply per-section title/path overrides on top of SECTIONS."""
    if not isinstance(overrides, dict):
        raise ConfigError("'sections' must be a mapping")
    sections = dict(SECTIONS)
    for key, values in overrides.items():
        try:
            section = Section(key)
        except ValueError:
            raise ConfigError(f"Unknown section in configuration: {key}") from None
        values = values or {}
        if not isinstance(values, dict):
            raise ConfigError(f"Configuration for section '{key}' must be a mapping")
        base = sections[section]
        sections[section] = SectionConfig(
            name=base.name,
            title=str(values.get("title", base.title)),
            path=str(values.get("path", base.path)),
        )
    return sections
