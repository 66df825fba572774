"""Pinned GitHub repositories for the projects listing.

Key classes:
- RepoSummary: One repository as shown on the index page.
- GitHubClient: Fetches pinned repositories through the GraphQL API.
- RepositoryCache: Single-slot TTL cache in front of a fetcher.
- NullRepositorySource: Always returns no repositories.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

import requests

from .config import FolioError, SiteConfig
from .protocols import RepositorySource

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"
USER_AGENT = "folio-site"

PINNED_QUERY = """
query($login: String!, $limit: Int!) {
  user(login: $login) {
    pinnedItems(first: $limit, types: REPOSITORY) {
      nodes {
        ... on Repository {
          name
          description
          url
          stargazerCount
          primaryLanguage {
            name
          }
          updatedAt
        }
      }
    }
  }
}
"""


class RepositoryFetchError(FolioError):
    """Fetching repositories from GitHub failed."""


@dataclass(frozen=True)
class RepoSummary:
    """Repository details shown in the projects listing.

    Attributes:
        name: Repository name.
        description: Optional description.
        url: Repository web URL.
        star_count: Number of stargazers.
        primary_language: Optional main language.
        updated_at: Last update timestamp as reported by GitHub.
    """

    name: str
    url: str
    star_count: int = 0
    description: str | None = None
    primary_language: str | None = None
    updated_at: str = ""

    @classmethod
    def from_graphql(cls, node: dict[str, Any]) -> RepoSummary:
        language = node.get("primaryLanguage") or {}
        return cls(
            name=str(node["name"]),
            url=str(node["url"]),
            star_count=int(node.get("stargazerCount") or 0),
            description=node.get("description") or None,
            primary_language=language.get("name") or None,
            updated_at=str(node.get("updatedAt") or ""),
        )


class GitHubClient:
    """Fetches a user's pinned repositories.

    Attributes:
        username: GitHub login whose pins are listed.
        token: Optional API token.
        session: requests session used for HTTP calls.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        username: str,
        token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = 10,
    ):
        self.username = username
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_pinned(self, limit: int = 6) -> list[RepoSummary]:
        """Fetch pinned repositories.

        Args:
            limit: Maximum number of repositories.

        Returns:
            List of RepoSummary in pin order.

        Raises:
            RepositoryFetchError: On network, HTTP, GraphQL or payload errors.
        """
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        payload = {
            "query": PINNED_QUERY,
            "variables": {"login": self.username, "limit": limit},
        }
        try:
            response = self.session.post(
                GRAPHQL_URL, json=payload, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise RepositoryFetchError(f"GitHub request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise RepositoryFetchError("Unexpected GitHub response")
        if data.get("errors"):
            raise RepositoryFetchError(f"GitHub GraphQL errors: {data['errors']}")

        user = (data.get("data") or {}).get("user") or {}
        nodes = (user.get("pinnedItems") or {}).get("nodes") or []
        try:
            # Pinned gists come back as empty nodes.
            return [RepoSummary.from_graphql(node) for node in nodes if node][:limit]
        except (KeyError, TypeError, ValueError) as exc:
            raise RepositoryFetchError(f"Malformed repository data: {exc}") from exc


class RepositoryCache:
    """Single-slot cache of the repository list.

    The slot starts empty, is refreshed lazily when older than the TTL and
    lives until the process exits. Refresh failures are logged and yield an
    empty list; the slot is left untouched so the next call retries.

    Attributes:
        fetcher: Callable taking a limit and returning repositories.
        ttl_seconds: Validity window of a cached list.
        clock: Monotonic clock in seconds.
    """

    def __init__(
        self,
        fetcher: Callable[[int], list[RepoSummary]],
        ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetcher = fetcher
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._repos: list[RepoSummary] | None = None
        self._limit = 0
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    def get_top_repositories(self, limit: int = 6) -> list[RepoSummary]:
        """Return up to ``limit`` repositories, never raising.

        A cached list only answers requests up to the limit it was fetched
        with; a larger limit refreshes the slot.
        """
        with self._lock:
            now = self.clock()
            if (
                self._repos is not None
                and limit <= self._limit
                and now - self._fetched_at < self.ttl_seconds
            ):
                return list(self._repos[:limit])
            try:
                repos = self.fetcher(limit)
            except Exception:
                logger.exception("Error fetching repositories")
                return []
            self._repos = list(repos)
            self._limit = limit
            self._fetched_at = now
            return list(self._repos[:limit])

    def invalidate(self) -> None:
        with self._lock:
            self._repos = None
            self._limit = 0
            self._fetched_at = 0.0


class NullRepositorySource:
    """Repository source used when no GitHub account is configured."""

    def get_top_repositories(self, limit: int = 6) -> list[RepoSummary]:
        return []


def repository_source_for(site: SiteConfig) -> RepositorySource:
    """Build the repository source for a site.

    Returns:
        RepositoryCache over a GitHubClient, or NullRepositorySource when the
        site has no GitHub handle.
    """
    if not site.github_user:
        return NullRepositorySource()
    client = GitHubClient(site.github_user, token=site.github_token)
    return RepositoryCache(client.fetch_pinned, ttl_seconds=site.repo_cache_seconds)
