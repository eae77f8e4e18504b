"""ActivityPub inbox endpoints.

Deliveries are acknowledged with 202 as soon as the envelope parses;
processing continues in a background task with its own session.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy.orm import Session, sessionmaker

from cadence_fed.db.session import SessionLocal, get_db
from cadence_fed.models import User
from cadence_fed.schemas.activity import InboundActivity
from cadence_fed.services.inbox import InboxProcessor, get_inbox_processor

# Configure logger for this module
logger = logging.getLogger(__name__)

router = APIRouter(tags=["federation"])


def get_session_factory() -> sessionmaker[Session]:
    """Session factory used by background processing."""
    return SessionLocal


SessionDep = Annotated[Session, Depends(get_db)]
ProcessorDep = Annotated[InboxProcessor, Depends(get_inbox_processor)]
SessionFactoryDep = Annotated[sessionmaker[Session], Depends(get_session_factory)]


async def _parse_activity(request: Request) -> InboundActivity:
    try:
        payload: Any = await request.json()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Body is not valid JSON"
        ) from exc

    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Activity must be a JSON object"
        )
    try:
        return InboundActivity.from_payload(payload)
    except ValidationError as exc:
        logger.info("Rejected malformed activity: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed activity"
        ) from exc


async def _process_activity(
    processor: InboxProcessor,
    session_factory: sessionmaker[Session],
    activity: InboundActivity,
) -> None:
    with session_factory() as db:
        outcome = await processor.handle_activity(db, activity)
    logger.debug("Activity %s finished as %s", activity.id, outcome.value)


@router.post("/users/{username}/inbox", status_code=status.HTTP_202_ACCEPTED)
async def user_inbox(
    username: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: SessionDep,
    processor: ProcessorDep,
    session_factory: SessionFactoryDep,
) -> dict[str, str]:
    """Accept an activity addressed to one local user."""
    user = (
        db.query(User)
        .filter(User.username == username, User.is_remote.is_(False))
        .first()
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    activity = await _parse_activity(request)
    background_tasks.add_task(_process_activity, processor, session_factory, activity)
    return {"status": "accepted"}


@router.post("/inbox", status_code=status.HTTP_202_ACCEPTED)
async def shared_inbox(
    request: Request,
    background_tasks: BackgroundTasks,
    processor: ProcessorDep,
    session_factory: SessionFactoryDep,
) -> dict[str, str]:
    """Accept an activity delivered to the instance-wide shared inbox."""
    activity = await _parse_activity(request)
    background_tasks.add_task(_process_activity, processor, session_factory, activity)
    return {"status": "accepted"}
