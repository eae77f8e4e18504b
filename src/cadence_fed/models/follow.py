# src/cadence_fed/models/follow.py
"""Models for the federated social graph."""

from __future__ import annotations

import enum

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cadence_fed.db.session import Base


class FollowStatus(enum.Enum):
    """Lifecycle of a follow relationship; undo deletes the row."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


FOLLOW_STATUS_ENUM = Enum(FollowStatus, name="follow_status")


class Follower(Base):
    """A remote actor following a local user."""

    __tablename__ = "follower"
    __table_args__ = (
        UniqueConstraint("user_id", "actor_url", name="uq_follower_user_actor"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    actor_url: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    inbox_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    shared_inbox_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Id of the Follow activity, echoed back in Accept/Reject.
    follow_activity_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[FollowStatus] = mapped_column(
        FOLLOW_STATUS_ENUM,
        nullable=False,
        default=FollowStatus.PENDING,
    )

    @property
    def accepted(self) -> bool:
        return self.status is FollowStatus.ACCEPTED


class Following(Base):
    """A local user following a remote actor."""

    __tablename__ = "following"
    __table_args__ = (
        UniqueConstraint("user_id", "actor_url", name="uq_following_user_actor"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    actor_url: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[FollowStatus] = mapped_column(
        FOLLOW_STATUS_ENUM,
        nullable=False,
        default=FollowStatus.PENDING,
    )

    @property
    def accepted(self) -> bool:
        return self.status is FollowStatus.ACCEPTED
