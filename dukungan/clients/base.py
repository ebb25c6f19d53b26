from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class StoreSnapshot:
    def __init__(self, entries: Dict[str, Dict[str, Any]], sha: Optional[str]):
        self.entries = entries
        self.sha = sha


class WriteResult:
    def __init__(self, sha: Optional[str], commit_url: Optional[str] = None):
        self.sha = sha
        self.commit_url = commit_url


class BaseTransactionStore(ABC):
    """A JSON mapping of transaction key -> entry, versioned as a whole."""

    @abstractmethod
    async def read_all(self) -> StoreSnapshot:
        """
        Read the full mapping and its version token.
        A store that does not exist yet reads as ({}, None).
        """
        pass

    @abstractmethod
    async def write(
        self,
        entries: Dict[str, Dict[str, Any]],
        expected_sha: Optional[str],
        message: str,
    ) -> WriteResult:
        """
        Replace the mapping if the stored version still equals expected_sha.

        Raises:
            VersionConflict: the stored version moved on since it was read
            RemoteUnavailable: the backend could not be reached
        """
        pass


class BaseMutationSource(ABC):
    """A feed of recent bank account mutations (credits and debits)."""

    @abstractmethod
    async def fetch_mutations(self) -> List[Dict[str, Any]]:
        """
        Returns the provider's raw mutation records, newest first when the
        provider orders them. Each record carries at least `type` and `amount`.
        """
        pass

    @property
    @abstractmethod
    def source_name(self) -> str:
        pass
