"""Repository interfaces and implementations."""

from .base import (
    AuditSink,
    CandidateFilter,
    CandidateRepository,
    EventBus,
    ItemRepository,
)
from .memory import InMemoryCandidateRepository, InMemoryItemRepository
from .json_store import JsonFileItemRepository

__all__ = [
    "AuditSink",
    "CandidateFilter",
    "CandidateRepository",
    "EventBus",
    "ItemRepository",
    "InMemoryCandidateRepository",
    "InMemoryItemRepository",
    "JsonFileItemRepository",
]
