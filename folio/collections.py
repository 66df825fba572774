"""Immutable, date-ordered post sequences."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .content import Post


class PostCollection(Sequence["Post"]):
    """Posts of one section, newest first.

    The order is fixed at construction: strictly descending by date,
    ties in no guaranteed order.
    """

    def __init__(self, posts: Iterable[Post] = ()):
        self._posts = sorted(posts, key=lambda p: p.date, reverse=True)

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        return self._posts[item]

    def get(self, slug: str) -> Post | None:
        for post in self._posts:
            if post.slug == slug:
                return post
        return None

    def slugs(self) -> list[str]:
        return [p.slug for p in self._posts]

    def latest(self, count: int = 5) -> PostCollection:
        return PostCollection(self._posts[:count])

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"
