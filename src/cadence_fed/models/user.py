# src/cadence_fed/models/user.py
"""SQLAlchemy model for local accounts and mirrored remote actors."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cadence_fed.db.session import Base
from cadence_fed.db.time import utcnow


def new_id() -> str:
    """Return a fresh string primary key."""
    return str(uuid.uuid4())


class User(Base):
    """A local account or the cached profile of a remote actor.

    Remote actors are stored with ``is_remote = True`` and keyed by their
    canonical ``external_actor_url``. Local accounts have no external URL.
    """

    __tablename__ = "user_account"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_remote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    external_actor_url: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)

    inbox_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    shared_inbox_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    public_key_pem: Mapped[str | None] = mapped_column(Text, nullable=True)

    profile_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    header_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_color: Mapped[str | None] = mapped_column(Text, nullable=True)

    # NULL means "never configured", which behaves as auto-accept.
    auto_accept_followers: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    # Last successful fetch of the remote actor document.
    actor_fetched_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def accepts_followers_automatically(self) -> bool:
        """Return the effective auto-accept policy."""
        return True if self.auto_accept_followers is None else self.auto_accept_followers

    @property
    def delivery_inbox(self) -> str | None:
        """Return the preferred inbox for outbound delivery."""
        return self.shared_inbox_url or self.inbox_url

    def summary(self) -> dict[str, object]:
        """Return the denormalized user fields embedded in notifications."""
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "displayColor": self.display_color,
            "profileImage": self.profile_image,
            "isRemote": self.is_remote,
        }
