"""Protocol definitions for Folio.

These protocols describe the seams between the content pipeline and its
collaborators, so tests and callers can substitute their own implementations.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .extractors import PostMetadata
    from .github import RepoSummary


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for converting a post body to HTML."""

    @abstractmethod
    def render(self, content: str) -> str:
        """Render content to HTML.

        Args:
            content: Source content to render.

        Returns:
            Rendered HTML. Must not raise on malformed input.
        """
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Protocol for splitting a post file into metadata and body."""

    @abstractmethod
    def extract(self, text: str) -> PostMetadata:
        """Extract metadata from a post file.

        Args:
            text: Decoded file content.

        Returns:
            PostMetadata with defaults applied.
        """
        ...


@runtime_checkable
class RepositorySource(Protocol):
    """Protocol for the repository list shown in the projects listing."""

    @abstractmethod
    def get_top_repositories(self, limit: int = 6) -> list[RepoSummary]:
        """Return up to ``limit`` repositories.

        Implementations never raise; upstream failures yield an empty list.
        """
        ...
