"""
Server-Sent Events stream over the change feed
"""
import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from nokhba.api.deps import get_current_session
from nokhba.database import get_db
from nokhba.models import Student
from nokhba.services.auth_service import UserSession
from nokhba.services.lesson_service import lesson_service
from nokhba.services.progress_service import progress_service
from nokhba.services.recharge_service import recharge_service
from nokhba.schemas.lesson import ProgressSummary
from nokhba.schemas.wallet import CodeResponse
from nokhba.utils.change_feed import change_feed

router = APIRouter(prefix="/api/stream", tags=["stream"])
logger = logging.getLogger(__name__)

USER_CHANNELS = {"progress", "wallet", "alerts"}
ADMIN_CHANNELS = {"codes"}
KEEPALIVE_SECONDS = 15


def sse_event(payload: Any, event: str = "message") -> str:
    return f"event: {event}\ndata: {json.dumps(jsonable_encoder(payload), ensure_ascii=False)}\n\n"


def topic_for(channel: str, session: UserSession) -> str:
    if channel in USER_CHANNELS:
        return f"{channel}:{session.user_id}"
    if channel in ADMIN_CHANNELS:
        if not session.is_admin:
            raise HTTPException(status_code=403, detail="Admin access required")
        return channel
    if channel == "lessons":
        return channel
    raise HTTPException(status_code=404, detail=f"Unknown channel: {channel}")


def snapshot(db: Session, channel: str, session: UserSession) -> Any:
    """Current value sent before any change"""
    if channel == "progress":
        return {
            lesson_id: ProgressSummary.model_validate(row).model_dump()
            for lesson_id, row in progress_service.progress_map(db, session.user_id).items()
        }
    if channel == "wallet":
        balance = db.query(Student.wallet_balance).filter(Student.id == session.user_id).scalar()
        return {"wallet_balance": balance or 0}
    if channel == "lessons":
        student = db.query(Student).filter(Student.id == session.user_id).first()
        return lesson_service.catalogue_for(db, student, session.user_id)
    if channel == "codes":
        return [CodeResponse.model_validate(code).model_dump() for code in recharge_service.list_codes(db)]
    return None


@router.get("/{channel}")
async def stream_channel(
    channel: str,
    request: Request,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Subscribe to live updates

    Channels: lessons, progress, wallet, alerts, codes (admin).
    The first event is the current value; closing the connection unsubscribes.
    """
    topic = topic_for(channel, session)
    initial = jsonable_encoder(snapshot(db, channel, session))
    subscription = change_feed.subscribe(topic)
    logger.info(f"Stream opened: {topic}")

    async def events():
        try:
            yield sse_event(initial, event="snapshot")
            while not await request.is_disconnected():
                try:
                    payload = await subscription.get(timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield sse_event(payload, event="change")
        finally:
            subscription.close()
            logger.info(f"Stream closed: {topic}")

    return StreamingResponse(events(), media_type="text/event-stream")
