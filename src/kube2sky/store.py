"""Abstract interface for the store SkyDNS records are written to."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .model import SkyRecord


class StoreError(RuntimeError):
    """A single write or delete against the record store failed."""


class RecordStore(ABC):
    """Base class for record store adapters used by the reconciler."""

    @abstractmethod
    def upsert(self, name: str, record: SkyRecord) -> None:
        """Create or overwrite the record stored under ``name``."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove the record stored under ``name``.

        Removing a record that does not exist must succeed.
        """
