"""Storage backends for contest entries and settled results."""

from .interface import EntryStore
from .memory import InMemoryStore
from .results import ResultArchive
from .sql import SQLEntryStore

__all__ = ["EntryStore", "InMemoryStore", "ResultArchive", "SQLEntryStore"]
