from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StorageLocator:
    """Backend path of an object that has already been written."""

    path: str


@dataclass(frozen=True)
class ShareLink:
    """A public link as returned by the backend, before normalization."""

    raw_url: str


class StorageBackend(Protocol):
    """
    Storage and sharing calls the share protocol depends on.

    Every method raises ``BackendError`` on failure.
    """

    def write(self, path: str, data: bytes, overwrite: bool = True) -> StorageLocator:
        """Store bytes at path and return the locator the backend assigned."""
        ...

    def create_public_link(self, locator: StorageLocator) -> ShareLink:
        """Create a public link, raising a ``link_exists`` error if one exists."""
        ...

    def list_links(
        self, locator: StorageLocator, direct_only: bool = True
    ) -> list[ShareLink]:
        """List existing links for locator in backend order."""
        ...

    def exchange_refresh_token(self, refresh_token: str) -> str:
        """Trade a refresh token for a new access token."""
        ...
