# src/cadence_fed/models/event.py
"""SQLAlchemy models for events and the comments attached to them."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cadence_fed.db.session import Base
from cadence_fed.db.time import utcnow
from cadence_fed.models.user import new_id

if TYPE_CHECKING:
    from cadence_fed.models.engagement import EventAttendance, EventLike


class Event(Base):
    """Calendar event, either authored locally or mirrored from a remote instance.

    Remote mirrors carry the origin object id in ``external_id`` and the
    organizer's actor URL in ``attributed_to``; their ``user_id`` stays NULL
    because ownership remains with the originating instance.
    """

    __tablename__ = "event"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    external_id: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_attendance_mode: Mapped[str | None] = mapped_column(Text, nullable=True)
    maximum_attendee_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    header_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    attributed_to: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("user_account.id", ondelete="SET NULL"),
        nullable=True,
    )

    comments: Mapped[list[Comment]] = relationship(
        "Comment", cascade="all, delete-orphan"
    )
    likes: Mapped[list[EventLike]] = relationship(
        "EventLike", cascade="all, delete-orphan"
    )
    attendance: Mapped[list[EventAttendance]] = relationship(
        "EventAttendance", cascade="all, delete-orphan"
    )


class Comment(Base):
    """A comment on an event; remote comments arrive as Notes."""

    __tablename__ = "comment"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    external_id: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    event_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("event.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
