"""
services/message/router.py
Conversation threads attached to a booking. Clients poll the list endpoint;
`since` limits the response to messages sent at or after a given instant.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from config.storage import get_storage
from shared.schemas.entities import Message, MessageCreate, as_utc
from shared.schemas.schemas import MessageCreateRequest, MessageWithSender
from shared.storage.base import Storage
from shared.utils.enrichment import message_with_sender

router = APIRouter(prefix="/api/messages", tags=["Messages"])


@router.post("", response_model=Message, status_code=status.HTTP_201_CREATED)
async def send_message(data: MessageCreateRequest, storage: Storage = Depends(get_storage)):
    if not await storage.get_booking(data.booking_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return await storage.create_message(MessageCreate(**data.model_dump()))


@router.get("/booking/{booking_id}", response_model=List[MessageWithSender])
async def list_booking_messages(
    booking_id: str,
    since: Optional[datetime] = Query(None, description="Only messages sent at or after this instant"),
    storage: Storage = Depends(get_storage),
):
    """Messages for a booking, oldest first, each with its sender's name."""
    messages = await storage.get_messages_by_booking(
        booking_id, since=as_utc(since) if since else None
    )
    return [await message_with_sender(storage, m) for m in messages]
