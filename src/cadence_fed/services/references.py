"""Storage lookups shared by the inbox handlers."""

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.orm import Session

from cadence_fed.models import Comment, Event, User
from cadence_fed.utils.urls import local_username, trailing_segment


def find_event(db: Session, reference: str | None) -> Event | None:
    """Find an event by external id, falling back to the trailing id segment."""
    if not reference:
        return None
    return (
        db.query(Event)
        .filter(or_(Event.external_id == reference, Event.id == trailing_segment(reference)))
        .order_by(Event.external_id.is_(None))
        .first()
    )


def find_comment(db: Session, reference: str) -> Comment | None:
    """Find a comment by external id, falling back to the trailing id segment."""
    return (
        db.query(Comment)
        .filter(or_(Comment.external_id == reference, Comment.id == trailing_segment(reference)))
        .first()
    )


def find_local_user(db: Session, actor_url: str | None) -> User | None:
    """Return the local user named by a local actor URL, if any."""
    username = local_username(actor_url)
    if username is None:
        return None
    return (
        db.query(User)
        .filter(User.username == username, User.is_remote.is_(False))
        .first()
    )
