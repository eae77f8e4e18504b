# src/cadence_fed/models/__init__.py
"""SQLAlchemy models for the Cadence federation engine."""

from .engagement import EventAttendance, EventLike
from .event import Comment, Event
from .follow import Follower, FollowStatus, Following
from .processed_activity import ProcessedActivity
from .user import User

__all__ = [
    "Comment", "Event",
    "EventAttendance", "EventLike",
    "Follower", "FollowStatus", "Following",
    "ProcessedActivity",
    "User",
]
