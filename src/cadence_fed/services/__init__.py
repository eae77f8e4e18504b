"""Federation services: inbox pipeline, handlers and their collaborators."""

from .inbox import InboxProcessor, ProcessingOutcome
from .ledger import ActivityLedger, Admission
from .notifications import BroadcastEvent, InMemoryBroadcaster, NotificationBroadcaster

__all__ = [
    "ActivityLedger", "Admission",
    "BroadcastEvent", "InMemoryBroadcaster", "NotificationBroadcaster",
    "InboxProcessor", "ProcessingOutcome",
]
