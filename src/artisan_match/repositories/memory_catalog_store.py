"""In-memory catalog store.

Holds artisan profiles in a dict, filters them with ``SearchFilters`` and
emits ``ProfileChange`` signals on every mutation. Used by the API when a
JSON seed file is configured, by the demo script and by tests.
"""

import json
import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from artisan_match.entities import ArtisanProfile, SearchFilters
from artisan_match.errors import CatalogUnavailableError
from artisan_match.protocols import ChangeListener, ProfileChange

logger = logging.getLogger(__name__)


class InMemoryCatalogStore:
    """In-memory implementation of the CatalogStore protocol.

    Example:
        ```python
        catalog = InMemoryCatalogStore.from_json("catalog.json")
        catalog.subscribe(lambda change: print(change.kind, change.profile_id))

        catalog.upsert(ArtisanProfile(id="a1", name="Meera", profession="pottery"))
        profiles = await catalog.query_profiles(SearchFilters(profession="pottery"))
        ```
    """

    def __init__(self, profiles: Iterable[ArtisanProfile] = ()) -> None:
        self._profiles: dict[str, ArtisanProfile] = {profile.id: profile for profile in profiles}
        self._listeners: list[ChangeListener] = []
        self._lock = threading.Lock()

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemoryCatalogStore":
        """Load a catalog from a JSON file holding a list of profile objects.

        Raises:
            CatalogUnavailableError: If the file cannot be read or parsed
        """
        try:
            records = json.loads(Path(path).read_text(encoding="utf-8"))
            profiles = [ArtisanProfile.from_dict(record) for record in records]
        except (OSError, ValueError, TypeError) as e:
            raise CatalogUnavailableError(f"Cannot load catalog from {path}: {e}") from e

        logger.info("Loaded %d artisan profiles from %s", len(profiles), path)
        return cls(profiles)

    async def query_profiles(self, filters: SearchFilters) -> list[ArtisanProfile]:
        """Return profiles passing the filters, ordered by id."""
        with self._lock:
            profiles = sorted(self._profiles.values(), key=lambda profile: profile.id)
        if filters.is_empty:
            return profiles
        return [profile for profile in profiles if filters.matches(profile)]

    async def get_profile(self, profile_id: str) -> ArtisanProfile | None:
        with self._lock:
            return self._profiles.get(profile_id)

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def upsert(self, profile: ArtisanProfile) -> None:
        """Create or replace a profile and notify subscribers."""
        with self._lock:
            kind = "updated" if profile.id in self._profiles else "created"
            self._profiles[profile.id] = profile
        self._notify(ProfileChange(profile_id=profile.id, kind=kind))

    def remove(self, profile_id: str) -> bool:
        """Delete a profile and notify subscribers. Returns True if it existed."""
        with self._lock:
            existed = self._profiles.pop(profile_id, None) is not None
        if existed:
            self._notify(ProfileChange(profile_id=profile_id, kind="deleted"))
        return existed

    def _notify(self, change: ProfileChange) -> None:
        for listener in self._listeners:
            listener(change)

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)
