"""Access to the skill store index."""

from __future__ import annotations

from skillkeeper.domain import SkillRemoteIndex
from skillkeeper.local_fs_repo import LocalRepository


class StoreService:
    """Reads and refreshes the cached store index held by a repository."""

    def __init__(self, repository: LocalRepository):
        self.repository = repository

    def refresh_index(self) -> list[SkillRemoteIndex]:
        """Reload the index from its source and return it."""
        return self.repository.refresh_store_index_cache()

    def get_index(self) -> list[SkillRemoteIndex]:
        """Return the cached index, building it if there is none yet."""
        return self.repository.get_store_index_cache()