# src/cadence_fed/models/engagement.py
"""Models capturing likes and RSVPs on events."""

from sqlalchemy import Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cadence_fed.core.constants import AttendanceStatus
from cadence_fed.db.session import Base


class EventLike(Base):
    """Per-user like on an event."""

    __tablename__ = "event_like"
    __table_args__ = (Index("ix_event_like_user_id", "user_id"),)

    # Composite primary key prevents duplicate likes from the same user.
    event_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("event.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    external_id: Mapped[str | None] = mapped_column(Text, nullable=True)


class EventAttendance(Base):
    """Per-user RSVP on an event."""

    __tablename__ = "event_attendance"
    __table_args__ = (Index("ix_event_attendance_user_id", "user_id"),)

    event_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("event.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    status: Mapped[AttendanceStatus] = mapped_column(
        Enum(
            AttendanceStatus,
            name="attendance_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    # Id of the activity that last set this status.
    external_id: Mapped[str | None] = mapped_column(Text, nullable=True)
