from typing import Optional, List, Dict, Any
from datetime import datetime, date
import uuid
from sqlalchemy import Index, text
from sqlmodel import SQLModel, Field, Relationship, JSON
from enum import Enum


class ConfigurationStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class BoothType(str, Enum):
    SEF_BUILT = "sef_built"          # Organizer builds the booth
    PARTNER_BUILT = "partner_built"  # Partner brings their own build


class StandStatus(str, Enum):
    PENDING_PARTNER_REVIEW = "pending_partner_review"  # Construction type not chosen yet
    PENDING_ADMIN_REVIEW = "pending_admin_review"      # Waiting for the organizer
    REVISION_NEEDED = "revision_needed"                # Organizer sent it back
    APPROVED = "approved"                              # Locked for partners
    COMPLETED = "completed"                            # Locked for partners


LOCKED_STATUSES = (StandStatus.APPROVED, StandStatus.COMPLETED)


class SubmissionType(str, Enum):
    FILE = "file"
    LINK = "link"


class FileSubmissionKind(str, Enum):
    LOGO = "logo"
    RENDER = "render"
    TECHNICAL_DRAWING = "technical_drawing"


class DrawingType(str, Enum):
    FLOOR_PLAN = "Floor Plan"
    ELEVATION = "Elevation"
    STRUCTURAL = "Structural"
    ELECTRICAL = "Electrical"
    OTHER = "Other"


class NotificationAudience(str, Enum):
    ADMIN = "admin"
    PARTNER = "partner"


class NotificationType(str, Enum):
    INFO = "info"
    ACTION_REQUIRED = "action_required"
    STATUS_CHANGE = "status_change"


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class TimestampMixin(SQLModel):
    """
    Standard audit timestamps shared by every top-level record.
    """
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="The exact UTC timestamp when this record was first persisted. Example: '2026-03-02 14:30:00'"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column_kwargs={"onupdate": datetime.utcnow},
        description="The exact UTC timestamp when this record was last modified. Updates automatically."
    )


# ==============================================================================
# REQUIREMENT TEMPLATES
# ==============================================================================


class StandConfiguration(TimestampMixin, SQLModel, table=True):
    """
    An administrator-authored, versioned requirement template.
    Describes the artwork slots a stand must fill (with fixed dimensions), the
    power voltages partners may pick from and the general artwork guidelines.
    Artwork requirements and voltages are ordered lists addressed by position.
    """
    __table_args__ = (
        # At most one row may carry is_default = true
        Index(
            "uq_standconfiguration_single_default",
            "is_default",
            unique=True,
            sqlite_where=text("is_default"),
            postgresql_where=text("is_default")
        ),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="Unique identifier for the template."
    )
    name: str = Field(
        index=True,
        description="Display name of the template. Example: 'Standard Booth 2026'"
    )
    description: Optional[str] = Field(
        default=None,
        description="Free text shown to administrators in the template list."
    )
    status: ConfigurationStatus = Field(
        default=ConfigurationStatus.DRAFT,
        description="Lifecycle state of the template. Example: 'active'"
    )
    version: str = Field(
        default="1.0",
        description="Free-form version label. Example: '1.2'"
    )
    version_history: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Append-only list of {version, changed_at, change_notes} written whenever the version label changes."
    )
    artwork_requirements: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Ordered list of artwork requirement objects (name, width, height, formats, ...)."
    )
    available_voltages: List[str] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Ordered list of voltage options. Example: ['110V', '220V']"
    )
    guidelines: Dict[str, Any] = Field(
        default_factory=dict,
        sa_type=JSON,
        description="General guidelines: file_formats, min_resolution, color_mode, bleed_area, review_time."
    )
    applicable_booth_types: List[str] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Booth construction types this template applies to. Example: ['sef_built']"
    )
    is_default: bool = Field(
        default=False,
        index=True,
        description="At most one template in the store carries this flag."
    )


# ==============================================================================
# STANDS
# ==============================================================================


class Stand(TimestampMixin, SQLModel, table=True):
    """
    A partner's exhibition booth record for the event.
    Owns every nested collection (submissions, comments, messages, revision
    history); deleting a Stand discards all of them.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="Unique identifier for the stand."
    )
    partner_id: uuid.UUID = Field(
        unique=True,
        index=True,
        description="The partner who owns this stand. One stand per partner."
    )
    configuration_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="standconfiguration.id",
        description="Template applied to this stand. When NULL the default template applies."
    )
    booth_number: Optional[str] = Field(
        default=None,
        description="Floor plan booth identifier. Example: 'B-14'"
    )
    booth_construction_type: Optional[BoothType] = Field(
        default=None,
        description="Who builds the booth. NULL until the partner chooses."
    )
    status: StandStatus = Field(
        default=StandStatus.PENDING_PARTNER_REVIEW,
        index=True,
        description="Current workflow state. Example: 'pending_admin_review'"
    )
    submission_deadline: Optional[date] = Field(
        default=None,
        description="Last day for partner submissions. Example: '2026-11-01'"
    )

    # Organizer-provided documentation
    technical_drawing_link: Optional[str] = Field(default=None)
    stand_render_link: Optional[str] = Field(default=None)
    technical_specs_link: Optional[str] = Field(default=None)
    branding_areas_link: Optional[str] = Field(default=None)
    exhibitor_manual_link: Optional[str] = Field(default=None)

    admin_notes: Optional[str] = Field(
        default=None,
        description="Notes from the organizer, visible to the partner."
    )
    revision_feedback: Optional[str] = Field(
        default=None,
        description="Latest feedback sent with a 'revision_needed' decision."
    )

    # AV / Power (whole-field overwrites)
    av_requirements: Dict[str, Any] = Field(
        default_factory=dict,
        sa_type=JSON,
        description="{equipment_list, special_instructions}"
    )
    power_voltage: Optional[str] = Field(default=None)
    power_outlets: Optional[int] = Field(default=None)
    special_requirements: Optional[str] = Field(default=None)
    admin_defined_voltages: List[str] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Stand-specific voltage options overriding the template list."
    )

    revision_history: List["StandRevision"] = Relationship(
        back_populates="stand",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "StandRevision.changed_at"
        }
    )
    artwork_submissions: List["ArtworkSubmission"] = Relationship(
        back_populates="stand",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "ArtworkSubmission.submitted_at"
        }
    )
    file_submissions: List["StandFileSubmission"] = Relationship(
        back_populates="stand",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "StandFileSubmission.submitted_at"
        }
    )
    partner_comments: List["PartnerComment"] = Relationship(
        back_populates="stand",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "PartnerComment.created_at"
        }
    )
    discussion_thread: List["StandMessage"] = Relationship(
        back_populates="stand",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "StandMessage.created_at"
        }
    )


class StandRevision(SQLModel, table=True):
    """
    Immutable audit entry written on every administrator status change.
    Rows are inserted, never updated or deleted (except with the parent stand).
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    stand_id: uuid.UUID = Field(foreign_key="stand.id", index=True)
    status: StandStatus = Field(
        description="The status the stand transitioned to."
    )
    feedback: str = Field(
        default="",
        description="Feedback given with the change. Required for 'revision_needed'."
    )
    changed_by: str = Field(
        description="Email of the administrator who made the change."
    )
    changed_at: datetime = Field(default_factory=datetime.utcnow)

    stand: Stand = Relationship(back_populates="revision_history")


class ArtworkSubmission(SQLModel, table=True):
    """
    One artwork entry submitted by the partner.
    When `requirement_name` is set the dimensions were copied from that
    template requirement at submission time; when NULL they are custom.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    stand_id: uuid.UUID = Field(foreign_key="stand.id", index=True)
    submission_type: SubmissionType = Field(
        description="Whether the artwork is an uploaded file or an external link."
    )
    file_url: Optional[str] = Field(default=None)
    link_url: Optional[str] = Field(default=None)
    file_name: Optional[str] = Field(default=None)
    width: float = Field(description="Width in meters. Example: 6.0")
    height: float = Field(description="Height in meters. Example: 3.0")
    description: Optional[str] = Field(default=None)
    artwork_type: str = Field(
        description="Requirement name, or 'Custom'. Example: 'Main Banner'"
    )
    requirement_name: Optional[str] = Field(
        default=None,
        description="Template requirement the dimensions came from. NULL for custom artwork."
    )
    submitted_at: datetime = Field(default_factory=datetime.utcnow)
    submitted_by: str = Field(description="Email of the submitting partner.")

    stand: Stand = Relationship(back_populates="artwork_submissions")
    comments: List["SubmissionComment"] = Relationship(
        back_populates="artwork",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "SubmissionComment.created_at"
        }
    )


class SubmissionComment(SQLModel, table=True):
    """
    A remark attached to an artwork entry.
    Partner remarks and organizer feedback share this table, split by flag.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    artwork_id: uuid.UUID = Field(
        foreign_key="artworksubmission.id", index=True)
    comment: str
    created_by: str
    is_admin_feedback: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    artwork: ArtworkSubmission = Relationship(back_populates="comments")


class StandFileSubmission(SQLModel, table=True):
    """
    Logo, render or technical drawing uploaded by the partner.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    stand_id: uuid.UUID = Field(foreign_key="stand.id", index=True)
    kind: FileSubmissionKind = Field(index=True)
    file_url: str
    file_name: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    drawing_type: Optional[DrawingType] = Field(
        default=None,
        description="Only set for technical drawings."
    )
    submitted_at: datetime = Field(default_factory=datetime.utcnow)
    submitted_by: str

    stand: Stand = Relationship(back_populates="file_submissions")


class PartnerComment(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    stand_id: uuid.UUID = Field(foreign_key="stand.id", index=True)
    comment: str
    created_by: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    stand: Stand = Relationship(back_populates="partner_comments")


class StandMessage(SQLModel, table=True):
    """
    Append-only discussion message shared by the partner and the organizer.
    There is no edit or delete path for these rows.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    stand_id: uuid.UUID = Field(foreign_key="stand.id", index=True)
    message: str = Field(default="")
    sender_email: str
    sender_name: str
    sender_title: str
    is_admin: bool = Field(default=False)
    attachment_url: Optional[str] = Field(default=None)
    attachment_name: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    stand: Stand = Relationship(back_populates="discussion_thread")


# ==============================================================================
# SIDE EFFECTS
# ==============================================================================


class Notification(SQLModel, table=True):
    """
    In-app notification written fire-and-forget after a workflow action.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    audience: NotificationAudience = Field(index=True)
    partner_id: Optional[uuid.UUID] = Field(
        default=None,
        index=True,
        description="Target partner. NULL for organizer-wide notifications."
    )
    title: str
    message: str
    type: NotificationType = Field(default=NotificationType.INFO)
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ActivityLog(SQLModel, table=True):
    """
    System-wide record of who changed what, independent of stand revision history.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    actor_email: str = Field(index=True)
    entity_type: str = Field(
        description="Example: 'Stand', 'StandConfiguration', 'ArtworkSubmission'")
    entity_id: uuid.UUID = Field(index=True)
    action: AuditAction
    changes: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    timestamp: datetime = Field(default_factory=datetime.utcnow)
