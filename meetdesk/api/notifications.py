"""
In-app notification endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from meetdesk.database import get_db
from meetdesk.models.notification import NotificationCategory, NotificationPriority
from meetdesk.services.repository import MeetingRepository

router = APIRouter()


class NotificationResponse(BaseModel):
    id: int
    recipient_id: str
    title: str
    message: str
    category: NotificationCategory
    priority: NotificationPriority
    link: Optional[str]
    is_read: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    recipient_id: str,
    unread_only: bool = False,
    db: AsyncSession = Depends(get_db),
):
    return await MeetingRepository(db).list_notifications(recipient_id, unread_only=unread_only)


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(notification_id: int, db: AsyncSession = Depends(get_db)):
    """Mark a notification as read"""
    repository = MeetingRepository(db)
    notification = await repository.find_notification(notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification.is_read = True
    return await repository.save_notification(notification)
