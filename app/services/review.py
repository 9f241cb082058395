import uuid
from typing import Optional
from loguru import logger
from sqlmodel import Session
from fastapi import HTTPException, BackgroundTasks

from app.core.audit import _perform_audit_log
from app.core.notifications import _send_notification
from app.core.exceptions import (
    FeedbackRequiredError, StandNotFoundError, SubmissionNotFoundError, WorkflowValidationError
)
from app.db.schema import (
    Stand, StandStatus, StandRevision, ArtworkSubmission, SubmissionComment,
    AuditAction, NotificationAudience, NotificationType
)
from app.models.auth import Actor


STATUS_LABELS = {
    StandStatus.PENDING_PARTNER_REVIEW: "Pending Partner Review",
    StandStatus.PENDING_ADMIN_REVIEW: "Pending Admin Review",
    StandStatus.REVISION_NEEDED: "Revision Needed",
    StandStatus.APPROVED: "Approved",
    StandStatus.COMPLETED: "Completed",
}


class ReviewWorkflowService:
    """
    Review Workflow Engine.
    Every status change of a stand goes through `transition`, whether it is
    an organizer decision or the automatic hand-off after a partner submission.
    """

    def __init__(self, session: Session):
        self.session = session

    # ==========================================================================
    # STATE MACHINE
    # ==========================================================================

    @staticmethod
    def validate_transition(target: StandStatus, feedback: Optional[str]) -> None:
        """Runs before anything is written."""
        if target == StandStatus.REVISION_NEEDED and not (feedback or "").strip():
            raise FeedbackRequiredError()

    def transition(
        self,
        stand: Stand,
        target: StandStatus,
        actor: Actor,
        feedback: Optional[str] = None,
        record_history: bool = True
    ) -> Optional[StandRevision]:
        """
        Applies a status change to `stand` inside the current session without
        committing. Returns the revision entry when one was written.

        A revision entry is written only when the status actually changes and
        `record_history` is set (organizer changes).
        """
        self.validate_transition(target, feedback)
        feedback = (feedback or "").strip()

        if target == StandStatus.REVISION_NEEDED or feedback:
            stand.revision_feedback = feedback

        previous = stand.status
        if previous == target:
            return None

        stand.status = target
        self.session.add(stand)
        logger.info(
            f"Stand {stand.id}: {previous.value} -> {target.value} by {actor.email}")

        if not record_history:
            return None

        revision = StandRevision(
            stand_id=stand.id,
            status=target,
            feedback=feedback,
            changed_by=actor.email
        )
        self.session.add(revision)
        return revision

    def request_admin_review(self, stand: Stand, actor: Actor) -> None:
        """Hand-off after an accepted partner submission."""
        self.transition(stand, StandStatus.PENDING_ADMIN_REVIEW,
                        actor, record_history=False)

    def notify_status_change(
        self,
        stand: Stand,
        revision: StandRevision,
        background_tasks: BackgroundTasks
    ):
        label = STATUS_LABELS[revision.status]
        message = f"Your stand status changed to {label}."
        if revision.feedback:
            message = f"{message} Feedback: {revision.feedback}"

        background_tasks.add_task(
            _send_notification,
            audience=NotificationAudience.PARTNER,
            partner_id=stand.partner_id,
            title=f"Stand {label}",
            message=message,
            type=NotificationType.STATUS_CHANGE
        )

    def notify_feedback_update(
        self,
        stand: Stand,
        previous_feedback: Optional[str],
        background_tasks: BackgroundTasks
    ):
        """
        New feedback on a stand that stays in 'revision_needed' writes no
        revision entry, so the partner is told here instead.
        """
        if stand.status != StandStatus.REVISION_NEEDED:
            return
        if stand.revision_feedback == previous_feedback:
            return

        background_tasks.add_task(
            _send_notification,
            audience=NotificationAudience.PARTNER,
            partner_id=stand.partner_id,
            title="Stand Feedback Updated",
            message=f"New feedback on your stand: {stand.revision_feedback}",
            type=NotificationType.STATUS_CHANGE
        )

    # ==========================================================================
    # ADMIN OPERATIONS
    # ==========================================================================

    def review_stand(
        self,
        actor: Actor,
        stand_id: uuid.UUID,
        target: StandStatus,
        feedback: Optional[str],
        background_tasks: BackgroundTasks
    ) -> Stand:
        """
        Organizer decision on a stand. Any status may be forced, including
        reopening an approved or completed stand.
        """
        self.validate_transition(target, feedback)

        stand = self.session.get(Stand, stand_id)
        if not stand:
            raise StandNotFoundError()

        previous = stand.status
        previous_feedback = stand.revision_feedback
        try:
            revision = self.transition(stand, target, actor, feedback)
            self.session.commit()
            self.session.refresh(stand)
        except HTTPException:
            raise
        except Exception as e:
            self.session.rollback()
            logger.error(f"Review of stand {stand_id} failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not update stand status.")

        if revision:
            self.notify_status_change(stand, revision, background_tasks)
            background_tasks.add_task(
                _perform_audit_log,
                actor_email=actor.email,
                entity_type="Stand",
                entity_id=stand.id,
                action=AuditAction.UPDATE,
                changes={"status": {"old": previous, "new": stand.status}}
            )
        else:
            self.notify_feedback_update(stand, previous_feedback, background_tasks)
        return stand

    def add_artwork_feedback(
        self,
        actor: Actor,
        stand_id: uuid.UUID,
        artwork_id: uuid.UUID,
        comment: str,
        background_tasks: BackgroundTasks
    ) -> SubmissionComment:
        """
        Organizer feedback on a single artwork entry. Allowed in every status.
        """
        comment = comment.strip()
        if not comment:
            raise WorkflowValidationError("Feedback cannot be empty.")

        artwork = self.session.get(ArtworkSubmission, artwork_id)
        if not artwork or artwork.stand_id != stand_id:
            raise SubmissionNotFoundError("Artwork")

        feedback = SubmissionComment(
            artwork_id=artwork.id,
            comment=comment,
            created_by=actor.email,
            is_admin_feedback=True
        )
        try:
            self.session.add(feedback)
            self.session.commit()
            self.session.refresh(feedback)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Artwork feedback on {artwork_id} failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not add feedback.")

        stand = self.session.get(Stand, stand_id)
        background_tasks.add_task(
            _send_notification,
            audience=NotificationAudience.PARTNER,
            partner_id=stand.partner_id,
            title="New Artwork Feedback",
            message=f"The organizer commented on your {artwork.artwork_type} artwork.",
            type=NotificationType.INFO
        )
        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="SubmissionComment",
            entity_id=feedback.id,
            action=AuditAction.CREATE,
            changes={"artwork_id": str(artwork.id), "admin_feedback": True}
        )
        return feedback
