"""Local storage adapters."""

from tierscope.adapters.storage.json_storage_adapter import JSONStorageAdapter
from tierscope.adapters.storage.memory_storage_adapter import InMemoryStorageAdapter

__all__ = ["InMemoryStorageAdapter", "JSONStorageAdapter"]
