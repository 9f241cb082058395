import uuid
from typing import Optional
from loguru import logger
from sqlmodel import Session

from app.db.schema import Notification, NotificationAudience, NotificationType
from app.db.core import engine


def _send_notification(
    audience: NotificationAudience,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
    partner_id: Optional[uuid.UUID] = None,
):
    """
    Background worker: fire-and-forget notification.
    The workflow write that scheduled it is already committed; failures are
    logged and never rolled back into the caller.
    """
    try:
        with Session(engine) as session:
            session.add(Notification(
                audience=audience,
                partner_id=partner_id,
                title=title,
                message=message,
                type=type
            ))
            session.commit()
    except Exception:
        logger.exception(
            f"Notification '{title}' to {audience.value} could not be created")
