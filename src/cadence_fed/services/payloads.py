"""Denormalized notification payloads, so clients can render without a lookup."""

from __future__ import annotations

from typing import Any

from cadence_fed.models import Comment, Event, User


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def event_summary(event: Event) -> dict[str, Any]:
    return {
        "id": event.id,
        "externalId": event.external_id,
        "title": event.title,
        "summary": event.summary,
        "location": event.location,
        "startTime": _iso(event.start_time),
        "endTime": _iso(event.end_time),
        "url": event.url,
        "headerImage": event.header_image,
        "attributedTo": event.attributed_to,
    }


def comment_summary(comment: Comment, author: User | None) -> dict[str, Any]:
    return {
        "id": comment.id,
        "externalId": comment.external_id,
        "content": comment.content,
        "eventId": comment.event_id,
        "createdAt": _iso(comment.created_at),
        "author": author.summary() if author is not None else None,
    }
