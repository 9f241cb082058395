from datetime import date, datetime
from typing import List, Optional
from uuid import UUID
from sqlmodel import SQLModel


class MessageRead(SQLModel):
    id: UUID
    message: str
    sender_email: str
    sender_name: str
    sender_title: str
    is_admin: bool
    attachment_url: Optional[str] = None
    attachment_name: Optional[str] = None
    created_at: datetime


class MessageDay(SQLModel):
    """All messages sent on one calendar day, oldest first."""
    day: date
    messages: List[MessageRead]


class DiscussionThreadRead(SQLModel):
    stand_id: UUID
    total: int
    days: List[MessageDay]
