import copy
import hashlib
import json
from typing import Any, Dict, Optional

from dukungan.clients.base import BaseTransactionStore, StoreSnapshot, WriteResult
from dukungan.errors import VersionConflict


class InMemoryTransactionStore(BaseTransactionStore):
    """
    Process-local store with the same contract as the GitHub one.
    The version token is a hash of the serialized document; an empty store
    has no token until its first write.
    """

    def __init__(self, entries: Optional[Dict[str, Dict[str, Any]]] = None):
        self._entries = None
        self._sha = None
        self.writes = []
        if entries is not None:
            self.load(entries)

    def load(self, entries: Dict[str, Dict[str, Any]]) -> str:
        """Replace the contents without a version check (seeding)."""
        return self._commit(entries)

    def _commit(self, entries: Dict[str, Dict[str, Any]]) -> str:
        content = json.dumps(entries, indent=2, sort_keys=True, ensure_ascii=False)
        self._entries = copy.deepcopy(entries)
        self._sha = hashlib.sha1(content.encode("utf-8")).hexdigest()
        return self._sha

    async def read_all(self) -> StoreSnapshot:
        if self._entries is None:
            return StoreSnapshot(entries={}, sha=None)
        return StoreSnapshot(entries=copy.deepcopy(self._entries), sha=self._sha)

    async def write(
        self,
        entries: Dict[str, Dict[str, Any]],
        expected_sha: Optional[str],
        message: str,
    ) -> WriteResult:
        if expected_sha != self._sha:
            raise VersionConflict(
                "Data changed while saving, reload and try again",
                detail=f"expected {expected_sha}, current {self._sha}",
            )
        sha = self._commit(entries)
        self.writes.append({"message": message, "sha": sha, "expected_sha": expected_sha})
        return WriteResult(sha=sha)
