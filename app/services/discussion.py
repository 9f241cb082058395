import uuid
from typing import Optional
from loguru import logger
from sqlmodel import Session, select
from fastapi import HTTPException, BackgroundTasks, UploadFile

from app.core.audit import _perform_audit_log
from app.core.notifications import _send_notification
from app.core.exceptions import WorkflowValidationError
from app.db.schema import (
    Stand, StandMessage, PartnerComment, AuditAction,
    NotificationAudience, NotificationType
)
from app.models.auth import Actor
from app.models.discussion import DiscussionThreadRead, MessageDay, MessageRead
from app.services.stand import StandService
from app.utils.file_storage import (
    save_upload_file, delete_stored_file, validate_image_attachment, ATTACHMENT_BUCKET
)
from app.utils.stand_rules import group_messages_by_day


class DiscussionService:
    """
    Discussion Channel: the append-only message log on each stand, plus the
    partner's stand-level comments. Neither is affected by the stand lock.
    """

    def __init__(self, session: Session):
        self.session = session
        self.stands = StandService(session)

    def _get_accessible_stand(self, actor: Actor, stand_id: uuid.UUID) -> Stand:
        stand = self.stands.get_stand(stand_id)
        self.stands.ensure_access(actor, stand)
        return stand

    def get_thread(self, actor: Actor, stand_id: uuid.UUID) -> DiscussionThreadRead:
        stand = self._get_accessible_stand(actor, stand_id)

        messages = self.session.exec(
            select(StandMessage)
            .where(StandMessage.stand_id == stand.id)
            .order_by(StandMessage.created_at)
        ).all()

        days = [
            MessageDay(
                day=day,
                messages=[MessageRead.model_validate(m, from_attributes=True) for m in batch]
            )
            for day, batch in group_messages_by_day(list(messages))
        ]
        return DiscussionThreadRead(stand_id=stand.id, total=len(messages), days=days)

    def send_message(
        self,
        actor: Actor,
        stand_id: uuid.UUID,
        message: Optional[str],
        attachment: Optional[UploadFile],
        background_tasks: BackgroundTasks
    ) -> StandMessage:
        """
        Appends one message. The attachment, if any, is validated and uploaded
        before the message row is written.
        """
        text = (message or "").strip()
        if attachment is not None and not attachment.filename:
            attachment = None
        if not text and attachment is None:
            raise WorkflowValidationError(
                "Write a message or attach an image.")

        stand = self._get_accessible_stand(actor, stand_id)

        attachment_url = None
        attachment_name = None
        if attachment is not None:
            validate_image_attachment(attachment)
            attachment_url = save_upload_file(attachment, ATTACHMENT_BUCKET)
            attachment_name = attachment.filename

        entry = StandMessage(
            stand_id=stand.id,
            message=text,
            sender_email=actor.email,
            sender_name=actor.name or actor.email,
            sender_title=actor.title or ("Organizer" if actor.is_admin else "Partner"),
            is_admin=actor.is_admin,
            attachment_url=attachment_url,
            attachment_name=attachment_name
        )
        try:
            self.session.add(entry)
            self.session.commit()
            self.session.refresh(entry)
        except Exception as e:
            self.session.rollback()
            delete_stored_file(attachment_url)
            logger.error(f"Message on stand {stand_id} failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not send message.")

        # Notify the other side of the conversation
        preview = text[:120] if text else "Sent an image"
        background_tasks.add_task(
            _send_notification,
            audience=NotificationAudience.PARTNER if actor.is_admin else NotificationAudience.ADMIN,
            partner_id=stand.partner_id,
            title=f"New stand message from {entry.sender_name}",
            message=preview,
            type=NotificationType.INFO
        )
        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="StandMessage",
            entity_id=entry.id,
            action=AuditAction.CREATE,
            changes={"stand_id": str(stand.id), "has_attachment": attachment_url is not None}
        )
        return entry

    def add_partner_comment(
        self,
        actor: Actor,
        comment: str,
        background_tasks: BackgroundTasks
    ) -> PartnerComment:
        comment = comment.strip()
        if not comment:
            raise WorkflowValidationError("Comment cannot be empty.")

        stand = self.stands.get_or_create_mine(actor, background_tasks)
        entry = PartnerComment(
            stand_id=stand.id,
            comment=comment,
            created_by=actor.email
        )
        try:
            self.session.add(entry)
            self.session.commit()
            self.session.refresh(entry)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Partner comment on stand {stand.id} failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not add comment.")

        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="PartnerComment",
            entity_id=entry.id,
            action=AuditAction.CREATE,
            changes={"stand_id": str(stand.id)}
        )
        return entry
