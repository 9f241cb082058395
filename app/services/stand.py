import uuid
from typing import List, Optional
from loguru import logger
from sqlmodel import Session, select, col, func
from fastapi import HTTPException, BackgroundTasks
from fastapi.encoders import jsonable_encoder

from app.core.audit import _perform_audit_log
from app.core.exceptions import StandNotFoundError, ConfigurationNotFoundError
from app.db.schema import (
    Stand, StandStatus, StandConfiguration, FileSubmissionKind, AuditAction
)
from app.models.auth import Actor
from app.models.stand import (
    StandCreate, StandAdminUpdate, StandRead, StandListItem, StandStatusSummary,
    AVRequirements, RevisionEntryRead, ArtworkSubmissionRead, CommentRead,
    FileSubmissionRead
)
from app.services.review import ReviewWorkflowService
from app.services.stand_configuration import StandConfigurationService
from app.utils.stand_rules import is_locked, is_overdue
from app.core.config import settings


def _file_reads(stand: Stand, kind: FileSubmissionKind) -> List[FileSubmissionRead]:
    return [
        FileSubmissionRead(
            id=f.id,
            file_url=f.file_url,
            file_name=f.file_name,
            description=f.description,
            drawing_type=f.drawing_type,
            submitted_at=f.submitted_at,
            submitted_by=f.submitted_by
        )
        for f in stand.file_submissions if f.kind == kind
    ]


def to_stand_read(stand: Stand) -> StandRead:
    """Flattens the normalized rows back into the nested stand document."""
    artwork = []
    for a in stand.artwork_submissions:
        artwork.append(ArtworkSubmissionRead(
            id=a.id,
            submission_type=a.submission_type,
            file_url=a.file_url,
            link_url=a.link_url,
            file_name=a.file_name,
            width=a.width,
            height=a.height,
            description=a.description,
            artwork_type=a.artwork_type,
            requirement_name=a.requirement_name,
            submitted_at=a.submitted_at,
            submitted_by=a.submitted_by,
            comments=[CommentRead(id=c.id, comment=c.comment, created_by=c.created_by, created_at=c.created_at)
                      for c in a.comments if not c.is_admin_feedback],
            admin_feedback=[CommentRead(id=c.id, comment=c.comment, created_by=c.created_by, created_at=c.created_at)
                            for c in a.comments if c.is_admin_feedback]
        ))

    return StandRead(
        id=stand.id,
        partner_id=stand.partner_id,
        configuration_id=stand.configuration_id,
        booth_number=stand.booth_number,
        booth_construction_type=stand.booth_construction_type,
        status=stand.status,
        submission_deadline=stand.submission_deadline,
        technical_drawing_link=stand.technical_drawing_link,
        stand_render_link=stand.stand_render_link,
        technical_specs_link=stand.technical_specs_link,
        branding_areas_link=stand.branding_areas_link,
        exhibitor_manual_link=stand.exhibitor_manual_link,
        admin_notes=stand.admin_notes,
        revision_feedback=stand.revision_feedback,
        revision_history=[
            RevisionEntryRead(
                id=r.id,
                status=r.status,
                feedback=r.feedback,
                changed_by=r.changed_by,
                changed_at=r.changed_at
            ) for r in stand.revision_history
        ],
        artwork_submissions=artwork,
        logo_submissions=_file_reads(stand, FileSubmissionKind.LOGO),
        render_submissions=_file_reads(stand, FileSubmissionKind.RENDER),
        technical_drawing_submissions=_file_reads(
            stand, FileSubmissionKind.TECHNICAL_DRAWING),
        av_requirements=AVRequirements(**(stand.av_requirements or {})),
        power_voltage=stand.power_voltage,
        power_outlets=stand.power_outlets,
        special_requirements=stand.special_requirements,
        partner_comments=[
            CommentRead(id=c.id, comment=c.comment,
                        created_by=c.created_by, created_at=c.created_at)
            for c in stand.partner_comments
        ],
        admin_defined_voltages=list(stand.admin_defined_voltages or []),
        is_locked=is_locked(stand.status),
        is_overdue=is_overdue(stand),
        created_at=stand.created_at,
        updated_at=stand.updated_at
    )


class StandService:
    """
    Stand Record Store: creation, lookup, organizer edits and deletion.
    """

    def __init__(self, session: Session):
        self.session = session
        self.review = ReviewWorkflowService(session)
        self.configurations = StandConfigurationService(session)

    # ==========================================================================
    # HELPERS
    # ==========================================================================

    def get_stand(self, stand_id: uuid.UUID) -> Stand:
        stand = self.session.get(Stand, stand_id)
        if not stand:
            raise StandNotFoundError()
        return stand

    def get_partner_stand(self, partner_id: uuid.UUID) -> Optional[Stand]:
        return self.session.exec(
            select(Stand).where(Stand.partner_id == partner_id)
        ).first()

    def ensure_access(self, actor: Actor, stand: Stand) -> None:
        """Organizers see every stand; partners only their own."""
        if actor.is_admin:
            return
        if stand.partner_id != actor.partner_id:
            raise HTTPException(
                status_code=403, detail="Access denied to this stand.")

    def _initial_voltages(self, configuration: Optional[StandConfiguration]) -> List[str]:
        if configuration and configuration.available_voltages:
            return list(configuration.available_voltages)
        return list(settings.default_voltages)

    # ==========================================================================
    # READ OPERATIONS
    # ==========================================================================

    def list_stands(self, status: Optional[StandStatus] = None) -> List[StandListItem]:
        statement = select(Stand)
        if status:
            statement = statement.where(Stand.status == status)
        statement = statement.order_by(col(Stand.updated_at).desc())

        return [
            StandListItem(
                id=s.id,
                partner_id=s.partner_id,
                booth_number=s.booth_number,
                booth_construction_type=s.booth_construction_type,
                status=s.status,
                submission_deadline=s.submission_deadline,
                is_overdue=is_overdue(s),
                artwork_count=len(s.artwork_submissions),
                updated_at=s.updated_at
            )
            for s in self.session.exec(statement).all()
        ]

    def status_summary(self) -> StandStatusSummary:
        rows = self.session.exec(
            select(Stand.status, func.count(Stand.id)).group_by(Stand.status)
        ).all()
        counts = {s: 0 for s in StandStatus}
        for status, count in rows:
            counts[StandStatus(status)] = count
        return StandStatusSummary(total=sum(counts.values()), by_status=counts)

    # ==========================================================================
    # WRITE OPERATIONS
    # ==========================================================================

    def get_or_create_mine(self, actor: Actor, background_tasks: BackgroundTasks) -> Stand:
        """
        A partner's first interaction creates their stand implicitly.
        """
        stand = self.get_partner_stand(actor.partner_id)
        if stand:
            return stand

        configuration = self.configurations.get_default()
        stand = Stand(
            partner_id=actor.partner_id,
            status=StandStatus.PENDING_PARTNER_REVIEW,
            admin_defined_voltages=self._initial_voltages(configuration)
        )
        try:
            self.session.add(stand)
            self.session.commit()
            self.session.refresh(stand)
        except Exception as e:
            self.session.rollback()
            # Lost a race with a concurrent first request
            existing = self.get_partner_stand(actor.partner_id)
            if existing:
                return existing
            logger.error(f"Implicit stand creation for {actor.email} failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not create stand.")

        logger.info(f"Stand {stand.id} created on first visit by {actor.email}")
        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="Stand",
            entity_id=stand.id,
            action=AuditAction.CREATE,
            changes={"partner_id": str(stand.partner_id), "implicit": True}
        )
        return stand

    def create_stand(self, actor: Actor, data: StandCreate, background_tasks: BackgroundTasks) -> Stand:
        if self.get_partner_stand(data.partner_id):
            raise HTTPException(
                status_code=409, detail="This partner already has a stand.")

        configuration = None
        if data.configuration_id:
            configuration = self.session.get(
                StandConfiguration, data.configuration_id)
            if not configuration:
                raise ConfigurationNotFoundError()
        else:
            configuration = self.configurations.get_default()

        values = data.model_dump(exclude={"admin_defined_voltages"})
        stand = Stand(
            **values,
            status=StandStatus.PENDING_PARTNER_REVIEW,
            admin_defined_voltages=data.admin_defined_voltages
            if data.admin_defined_voltages is not None
            else self._initial_voltages(configuration)
        )

        try:
            self.session.add(stand)
            self.session.commit()
            self.session.refresh(stand)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Stand creation failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not create stand.")

        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="Stand",
            entity_id=stand.id,
            action=AuditAction.CREATE,
            changes=data.model_dump(mode="json")
        )
        return stand

    def admin_update(
        self,
        actor: Actor,
        stand_id: uuid.UUID,
        data: StandAdminUpdate,
        background_tasks: BackgroundTasks
    ) -> Stand:
        """
        Organizer save. Field edits are allowed in every status; a status
        change is delegated to the review workflow in the same transaction.
        """
        patch = data.model_dump(exclude_unset=True)
        target = patch.pop("status", None)
        feedback = patch.pop("revision_feedback", None)

        if target is not None:
            # Rejects 'revision_needed' without feedback before any write
            self.review.validate_transition(target, feedback)

        stand = self.get_stand(stand_id)

        if patch.get("configuration_id") and not self.session.get(StandConfiguration, patch["configuration_id"]):
            raise ConfigurationNotFoundError()

        old_state = jsonable_encoder({k: getattr(stand, k) for k in patch})
        previous_feedback = stand.revision_feedback
        for field, value in patch.items():
            setattr(stand, field, value)

        revision = None
        try:
            self.session.add(stand)
            if target is not None:
                revision = self.review.transition(
                    stand, target, actor, feedback)
            # The saved form carries the feedback field whatever the status
            if feedback is not None:
                stand.revision_feedback = feedback.strip()
            self.session.commit()
            self.session.refresh(stand)
        except HTTPException:
            raise
        except Exception as e:
            self.session.rollback()
            logger.error(f"Admin update of stand {stand_id} failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not update stand.")

        if revision:
            self.review.notify_status_change(stand, revision, background_tasks)
        else:
            self.review.notify_feedback_update(
                stand, previous_feedback, background_tasks)

        changes = {k: {"old": old_state.get(k), "new": v}
                   for k, v in data.model_dump(exclude_unset=True, mode="json").items()}
        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="Stand",
            entity_id=stand.id,
            action=AuditAction.UPDATE,
            changes=changes
        )
        return stand

    def delete_stand(self, actor: Actor, stand_id: uuid.UUID, background_tasks: BackgroundTasks):
        """
        Hard delete. All nested submissions, messages and history go with it.
        """
        stand = self.get_stand(stand_id)
        snapshot = {"partner_id": str(stand.partner_id),
                    "status": stand.status.value,
                    "revision_count": len(stand.revision_history),
                    "message_count": len(stand.discussion_thread)}

        try:
            self.session.delete(stand)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Stand delete failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not delete stand.")

        logger.warning(f"Stand {stand_id} deleted by {actor.email}")
        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="Stand",
            entity_id=stand_id,
            action=AuditAction.DELETE,
            changes=snapshot
        )
        return {"message": "Stand deleted successfully."}
