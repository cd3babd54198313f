"""Catalog store protocol.

The catalog owns artisan profiles. The matching engine only reads
immutable snapshots from it and subscribes to its change signals so
cached results never outlive an edited profile.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from artisan_match.entities import ArtisanProfile, SearchFilters


@dataclass(frozen=True)
class ProfileChange:
    """Change signal emitted by a catalog store.

    Attributes:
        profile_id: Id of the changed profile
        kind: "created", "updated" or "deleted"
    """

    profile_id: str
    kind: str


ChangeListener = Callable[[ProfileChange], None]


@runtime_checkable
class CatalogStore(Protocol):
    """Protocol for read access to artisan profiles."""

    async def query_profiles(self, filters: SearchFilters) -> list[ArtisanProfile]:
        """Return every profile that passes the structured filters.

        Args:
            filters: Structured filters (empty filters return all profiles)

        Returns:
            Matching profile snapshots

        Raises:
            CatalogUnavailableError: If the catalog cannot be read
        """
        ...

    async def get_profile(self, profile_id: str) -> ArtisanProfile | None:
        """Return one profile, or None if it does not exist.

        Raises:
            CatalogUnavailableError: If the catalog cannot be read
        """
        ...

    def subscribe(self, listener: ChangeListener) -> None:
        """Register a listener for profile change signals."""
        ...
