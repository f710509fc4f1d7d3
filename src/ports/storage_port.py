"""Storage port — abstract interface for the local key-value store.

Core modules depend on this protocol, never on a specific provider.
Every value is an opaque string (JSON in practice).
"""

from __future__ import annotations

from typing import Protocol


class StorageError(Exception):
    """Raised when any storage provider operation fails."""


class StoragePort(Protocol):
    """Abstract key-value interface used by core modules."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def multi_remove(self, keys: list[str]) -> None: ...

    async def get_all_keys(self) -> list[str]: ...
