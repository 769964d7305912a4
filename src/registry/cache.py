"""Session-scoped cache for registry metadata."""

from __future__ import annotations

from typing import Dict, Iterator, Optional

from versioning.models import PackageMetadata


class MetadataCache:
    """In-memory packument cache keyed by package name.

    Entries never expire: a version published after the first fetch stays
    invisible until ``clear()`` or a new cache instance. Create one per
    analysis session, or pass the same instance to several clients to share it.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, PackageMetadata] = {}

    def get(self, name: str) -> Optional[PackageMetadata]:
        """Return cached metadata or None."""
        return self._entries.get(name)

    def set(self, name: str, metadata: PackageMetadata) -> None:
        """Store metadata for a package, replacing any previous entry."""
        self._entries[name] = metadata

    def prime(self, name: str, metadata: PackageMetadata) -> None:
        """Seed the cache so no network request is made for ``name``."""
        self.set(name, metadata)

    def clear(self) -> None:
        """Drop every cached entry."""
        self._entries.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
