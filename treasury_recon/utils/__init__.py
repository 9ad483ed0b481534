"""Utility modules."""

from .text_matching import TextMatcher
from .audit_logger import AuditLogger
from .events import InProcessEventBus, DomainEvent

__all__ = ["TextMatcher", "AuditLogger", "InProcessEventBus", "DomainEvent"]
