import uuid
from typing import Optional
from loguru import logger
from sqlmodel import Session
from fastapi import HTTPException, BackgroundTasks, UploadFile

from app.core.audit import _perform_audit_log
from app.core.notifications import _send_notification
from app.core.exceptions import (
    StandLockedError, SubmissionNotFoundError, WorkflowValidationError
)
from app.db.schema import (
    Stand, StandStatus, ArtworkSubmission, SubmissionComment, StandFileSubmission,
    FileSubmissionKind, SubmissionType, AuditAction,
    NotificationAudience, NotificationType
)
from app.models.auth import Actor
from app.models.stand import AVPowerUpdate, ConstructionTypeInput
from app.models.submission import (
    ArtworkSubmissionCreate, FileSubmissionCreate, TemplateBoundArtwork, CUSTOM_ARTWORK
)
from app.services.stand import StandService
from app.utils.file_storage import (
    save_upload_file, delete_stored_file, validate_stand_file,
    ARTWORK_BUCKET, LOGO_BUCKET, RENDER_BUCKET, DRAWING_BUCKET
)
from app.utils.stand_rules import is_locked, resolve_artwork_dimensions, voltage_options


FILE_KIND_BUCKETS = {
    FileSubmissionKind.LOGO: LOGO_BUCKET,
    FileSubmissionKind.RENDER: RENDER_BUCKET,
    FileSubmissionKind.TECHNICAL_DRAWING: DRAWING_BUCKET,
}

FILE_KIND_LABELS = {
    FileSubmissionKind.LOGO: "Logo",
    FileSubmissionKind.RENDER: "Render",
    FileSubmissionKind.TECHNICAL_DRAWING: "Technical Drawing",
}


class SubmissionService:
    """
    Submission Manager: partner-side writes into a stand's nested collections.
    Every entry is its own row, appended with a single INSERT and addressed by
    UUID afterwards. Accepted submissions hand the stand to the organizer via
    the review workflow.
    """

    def __init__(self, session: Session):
        self.session = session
        self.stands = StandService(session)
        self.review = self.stands.review
        self.configurations = self.stands.configurations

    # ==========================================================================
    # HELPERS
    # ==========================================================================

    def _ensure_unlocked(self, stand: Stand, actor: Actor) -> None:
        if is_locked(stand.status):
            logger.warning(
                f"Rejected write by {actor.email} on locked stand {stand.id} ({stand.status.value})")
            raise StandLockedError(stand.status.value)

    def _commit(self, stand: Stand, failure: str, uploaded_url: Optional[str] = None) -> None:
        try:
            self.session.commit()
            self.session.refresh(stand)
        except Exception as e:
            self.session.rollback()
            delete_stored_file(uploaded_url)
            logger.error(f"Stand {stand.id} write failed: {e}")
            raise HTTPException(status_code=500, detail=failure)

    def _after_submission(
        self,
        stand: Stand,
        actor: Actor,
        background_tasks: BackgroundTasks,
        title: str,
        entity_type: str,
        entity_id: uuid.UUID,
        changes: dict
    ) -> None:
        background_tasks.add_task(
            _send_notification,
            audience=NotificationAudience.ADMIN,
            partner_id=stand.partner_id,
            title=title,
            message=f"{actor.email} submitted an update for review",
            type=NotificationType.ACTION_REQUIRED
        )
        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.CREATE,
            changes=changes
        )

    def _get_artwork(self, stand: Stand, artwork_id: uuid.UUID) -> ArtworkSubmission:
        artwork = self.session.get(ArtworkSubmission, artwork_id)
        if not artwork or artwork.stand_id != stand.id:
            raise SubmissionNotFoundError("Artwork")
        return artwork

    # ==========================================================================
    # CONSTRUCTION TYPE
    # ==========================================================================

    def set_construction_type(
        self,
        actor: Actor,
        data: ConstructionTypeInput,
        background_tasks: BackgroundTasks
    ) -> Stand:
        """
        The partner's first decision. Does not change the stand status.
        """
        stand = self.stands.get_or_create_mine(actor, background_tasks)
        self._ensure_unlocked(stand, actor)

        if stand.status != StandStatus.PENDING_PARTNER_REVIEW:
            raise HTTPException(
                status_code=409,
                detail="The construction type can only be changed before submissions start. Contact the organizer."
            )

        stand.booth_construction_type = data.booth_construction_type
        self.session.add(stand)
        self._commit(stand, "Could not save construction type.")

        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="Stand",
            entity_id=stand.id,
            action=AuditAction.UPDATE,
            changes={"booth_construction_type": data.booth_construction_type}
        )

        if data.booth_construction_type:
            choice = "Building their own booth" \
                if data.booth_construction_type.value == "partner_built" else "Organizer to build booth"
            background_tasks.add_task(
                _send_notification,
                audience=NotificationAudience.ADMIN,
                partner_id=stand.partner_id,
                title="Booth Construction Type Selected",
                message=f"{actor.email} selected: {choice}",
                type=NotificationType.INFO
            )
        return stand

    # ==========================================================================
    # ARTWORK
    # ==========================================================================

    def submit_artwork(
        self,
        actor: Actor,
        data: ArtworkSubmissionCreate,
        file: Optional[UploadFile],
        background_tasks: BackgroundTasks
    ) -> ArtworkSubmission:
        """
        Appends an artwork entry and moves the stand to admin review.
        Dimensions for template-bound artwork are copied from the requirement
        as it reads now; later template edits do not touch stored entries.
        """
        stand = self.stands.get_or_create_mine(actor, background_tasks)
        self._ensure_unlocked(stand, actor)

        # 1. Validation (no writes yet)
        configuration = self.configurations.resolve_for_stand(stand)
        dimensions = resolve_artwork_dimensions(
            data.requirement_type, data.width, data.height, configuration)

        if data.submission_type == SubmissionType.FILE:
            if file is None or not file.filename:
                raise WorkflowValidationError("Please select a file.")
            if data.link_url:
                raise WorkflowValidationError(
                    "Send either a file or a link, not both.")
            if isinstance(dimensions, TemplateBoundArtwork):
                validate_stand_file(
                    file, dimensions.accepted_formats, dimensions.max_file_size_mb)
            else:
                validate_stand_file(file)
        else:
            if not (data.link_url or "").strip():
                raise WorkflowValidationError("Please enter a link.")
            if file is not None:
                raise WorkflowValidationError(
                    "Send either a file or a link, not both.")

        # 2. Upload
        file_url = save_upload_file(
            file, ARTWORK_BUCKET) if data.submission_type == SubmissionType.FILE else None

        # 3. Append + hand-off
        artwork = ArtworkSubmission(
            stand_id=stand.id,
            submission_type=data.submission_type,
            file_url=file_url,
            link_url=data.link_url.strip() if data.submission_type == SubmissionType.LINK else None,
            file_name=file.filename if file_url else None,
            width=dimensions.width,
            height=dimensions.height,
            description=data.description,
            artwork_type=dimensions.requirement_name
            if isinstance(dimensions, TemplateBoundArtwork) else CUSTOM_ARTWORK,
            requirement_name=getattr(dimensions, "requirement_name", None),
            submitted_by=actor.email
        )
        self.session.add(artwork)
        self.review.request_admin_review(stand, actor)
        self._commit(stand, "Failed to submit artwork.", file_url)
        self.session.refresh(artwork)

        self._after_submission(
            stand, actor, background_tasks,
            title="New Stand Artwork Submitted",
            entity_type="ArtworkSubmission",
            entity_id=artwork.id,
            changes={"artwork_type": artwork.artwork_type,
                     "submission_type": artwork.submission_type}
        )
        return artwork

    def delete_artwork(self, actor: Actor, artwork_id: uuid.UUID, background_tasks: BackgroundTasks):
        stand = self.stands.get_or_create_mine(actor, background_tasks)
        self._ensure_unlocked(stand, actor)
        artwork = self._get_artwork(stand, artwork_id)
        artwork_type = artwork.artwork_type

        self.session.delete(artwork)
        self._commit(stand, "Could not delete artwork.")

        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="ArtworkSubmission",
            entity_id=artwork_id,
            action=AuditAction.DELETE,
            changes={"artwork_type": artwork_type}
        )
        return {"message": "Artwork deleted."}

    def comment_on_artwork(
        self,
        actor: Actor,
        artwork_id: uuid.UUID,
        comment: str,
        background_tasks: BackgroundTasks
    ) -> SubmissionComment:
        stand = self.stands.get_or_create_mine(actor, background_tasks)
        self._ensure_unlocked(stand, actor)

        comment = comment.strip()
        if not comment:
            raise WorkflowValidationError("Comment cannot be empty.")
        artwork = self._get_artwork(stand, artwork_id)

        entry = SubmissionComment(
            artwork_id=artwork.id,
            comment=comment,
            created_by=actor.email,
            is_admin_feedback=False
        )
        self.session.add(entry)
        self._commit(stand, "Could not add comment.")
        self.session.refresh(entry)

        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="SubmissionComment",
            entity_id=entry.id,
            action=AuditAction.CREATE,
            changes={"artwork_id": str(artwork.id)}
        )
        return entry

    # ==========================================================================
    # LOGOS / RENDERS / DRAWINGS
    # ==========================================================================

    def submit_file(
        self,
        actor: Actor,
        kind: FileSubmissionKind,
        data: FileSubmissionCreate,
        file: Optional[UploadFile],
        background_tasks: BackgroundTasks
    ) -> StandFileSubmission:
        stand = self.stands.get_or_create_mine(actor, background_tasks)
        self._ensure_unlocked(stand, actor)

        label = FILE_KIND_LABELS[kind]
        if file is None or not file.filename:
            raise WorkflowValidationError(f"Please select a {label.lower()} file.")
        if kind == FileSubmissionKind.TECHNICAL_DRAWING and data.drawing_type is None:
            raise WorkflowValidationError("Please choose a drawing type.")
        validate_stand_file(file)

        file_url = save_upload_file(file, FILE_KIND_BUCKETS[kind])

        entry = StandFileSubmission(
            stand_id=stand.id,
            kind=kind,
            file_url=file_url,
            file_name=file.filename,
            description=data.description,
            drawing_type=data.drawing_type if kind == FileSubmissionKind.TECHNICAL_DRAWING else None,
            submitted_by=actor.email
        )
        self.session.add(entry)
        self.review.request_admin_review(stand, actor)
        self._commit(stand, f"Failed to upload {label.lower()}.", file_url)
        self.session.refresh(entry)

        self._after_submission(
            stand, actor, background_tasks,
            title=f"New Stand {label} Submitted",
            entity_type="StandFileSubmission",
            entity_id=entry.id,
            changes={"kind": kind, "file_name": entry.file_name}
        )
        return entry

    def delete_file(
        self,
        actor: Actor,
        kind: FileSubmissionKind,
        submission_id: uuid.UUID,
        background_tasks: BackgroundTasks
    ):
        stand = self.stands.get_or_create_mine(actor, background_tasks)
        self._ensure_unlocked(stand, actor)

        label = FILE_KIND_LABELS[kind]
        entry = self.session.get(StandFileSubmission, submission_id)
        if not entry or entry.stand_id != stand.id or entry.kind != kind:
            raise SubmissionNotFoundError(label)

        self.session.delete(entry)
        self._commit(stand, f"Could not delete {label.lower()}.")

        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="StandFileSubmission",
            entity_id=submission_id,
            action=AuditAction.DELETE,
            changes={"kind": kind}
        )
        return {"message": f"{label} deleted."}

    # ==========================================================================
    # AV / POWER
    # ==========================================================================

    def update_av_power(self, actor: Actor, data: AVPowerUpdate, background_tasks: BackgroundTasks) -> Stand:
        """
        Whole-field overwrites of the AV and power section.
        """
        stand = self.stands.get_or_create_mine(actor, background_tasks)
        self._ensure_unlocked(stand, actor)

        # Nested models are replaced whole, defaults included
        patch = data.model_dump(include=data.model_fields_set)
        if not patch:
            raise WorkflowValidationError("Nothing to update.")

        voltage = patch.get("power_voltage")
        if voltage:
            options = voltage_options(
                stand, self.configurations.resolve_for_stand(stand))
            if options and voltage not in options:
                raise WorkflowValidationError(
                    f"Voltage '{voltage}' is not available. Choose one of: {', '.join(options)}.")

        for field, value in patch.items():
            setattr(stand, field, value)
        self.session.add(stand)
        self.review.request_admin_review(stand, actor)
        self._commit(stand, "Could not save AV and power requirements.")

        self._after_submission(
            stand, actor, background_tasks,
            title="Stand AV/Power Requirements Updated",
            entity_type="Stand",
            entity_id=stand.id,
            changes={"fields": sorted(patch.keys())}
        )
        return stand
