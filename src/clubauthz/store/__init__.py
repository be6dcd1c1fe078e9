from __future__ import annotations

from .http_store import HTTPRecordStore
from .memory import InMemoryRecordStore

__all__ = ["HTTPRecordStore", "InMemoryRecordStore"]
