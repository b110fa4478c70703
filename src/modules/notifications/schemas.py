# Notifications Schemas

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationTypeEnum(str, Enum):
    PRESCRIPTION = "prescription"
    REPORT = "report"
    VITALS = "vitals"
    ACCOUNT = "account"
    SYSTEM = "system"


class NotificationCreate(BaseModel):
    user_id: UUID = Field(..., alias="userId")
    type: NotificationTypeEnum
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    link: Optional[str] = Field(default=None, max_length=500)

    class Config:
        populate_by_name = True


class NotificationResponse(BaseModel):
    id: UUID
    user_id: UUID
    type: NotificationTypeEnum
    title: str
    message: str
    link: Optional[str] = None
    read: bool
    created_at: Optional[datetime] = None


class NotificationsListResponse(BaseModel):
    success: bool = True
    notifications: List[NotificationResponse]
    unread_count: int


class NotificationEnvelope(BaseModel):
    success: bool = True
    notification: NotificationResponse


class MarkReadResponse(BaseModel):
    success: bool = True
    marked_count: int
    unread_count: int
