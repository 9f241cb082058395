from typing import Dict, List, Optional
from uuid import UUID
from datetime import date, datetime
from sqlmodel import SQLModel, Field
from app.db.schema import BoothType, StandStatus, DrawingType, SubmissionType

# ==========================================
# SUB-MODELS
# ==========================================


class AVRequirements(SQLModel):
    equipment_list: str = Field(
        default="",
        max_length=2000,
        schema_extra={"examples": ["2x 55in screens, 1 wireless mic"]}
    )
    special_instructions: str = Field(default="", max_length=2000)


# ==========================================
# WRITE MODELS (Admin)
# ==========================================


class StandCreate(SQLModel):
    """
    Payload for an organizer creating a stand for a partner.
    """
    partner_id: UUID = Field(description="The partner who will own the stand.")
    configuration_id: Optional[UUID] = Field(
        default=None,
        description="Template to apply. Omit to use the default template."
    )
    booth_number: Optional[str] = Field(default=None, max_length=50)
    submission_deadline: Optional[date] = None
    technical_drawing_link: Optional[str] = None
    stand_render_link: Optional[str] = None
    technical_specs_link: Optional[str] = None
    branding_areas_link: Optional[str] = None
    exhibitor_manual_link: Optional[str] = None
    admin_notes: Optional[str] = Field(default=None, max_length=5000)
    admin_defined_voltages: Optional[List[str]] = Field(
        default=None,
        description="Stand-specific voltage options. Omit to seed from the template."
    )


class StandAdminUpdate(SQLModel):
    """
    The organizer's stand editor save.
    A `status` different from the stored one is routed through the review
    workflow and recorded in the revision history.
    """
    configuration_id: Optional[UUID] = None
    booth_number: Optional[str] = Field(default=None, max_length=50)
    booth_construction_type: Optional[BoothType] = None
    submission_deadline: Optional[date] = None
    technical_drawing_link: Optional[str] = None
    stand_render_link: Optional[str] = None
    technical_specs_link: Optional[str] = None
    branding_areas_link: Optional[str] = None
    exhibitor_manual_link: Optional[str] = None
    admin_notes: Optional[str] = Field(default=None, max_length=5000)
    admin_defined_voltages: Optional[List[str]] = None
    status: Optional[StandStatus] = None
    revision_feedback: Optional[str] = Field(default=None, max_length=5000)


class ReviewPayload(SQLModel):
    status: StandStatus = Field(
        description="Target status. 'revision_needed' requires feedback.")
    feedback: Optional[str] = Field(
        default=None,
        max_length=5000,
        schema_extra={"examples": ["Increase resolution"]}
    )


class CommentInput(SQLModel):
    comment: str = Field(min_length=1, max_length=5000)


# ==========================================
# WRITE MODELS (Partner)
# ==========================================


class ConstructionTypeInput(SQLModel):
    booth_construction_type: Optional[BoothType] = Field(
        description="'sef_built', 'partner_built', or null to reset the choice."
    )


class AVPowerUpdate(SQLModel):
    """
    Whole-field overwrites. Omitted fields are left untouched.
    """
    av_requirements: Optional[AVRequirements] = None
    power_voltage: Optional[str] = Field(default=None, max_length=20)
    power_outlets: Optional[int] = Field(default=None, ge=0, le=100)
    special_requirements: Optional[str] = Field(default=None, max_length=2000)


# ==========================================
# READ MODELS
# ==========================================


class RevisionEntryRead(SQLModel):
    id: UUID
    status: StandStatus
    feedback: str
    changed_by: str
    changed_at: datetime


class CommentRead(SQLModel):
    id: UUID
    comment: str
    created_by: str
    created_at: datetime


class ArtworkSubmissionRead(SQLModel):
    id: UUID
    submission_type: SubmissionType
    file_url: Optional[str] = None
    link_url: Optional[str] = None
    file_name: Optional[str] = None
    width: float
    height: float
    description: Optional[str] = None
    artwork_type: str
    requirement_name: Optional[str] = None
    submitted_at: datetime
    submitted_by: str
    comments: List[CommentRead] = []
    admin_feedback: List[CommentRead] = []


class FileSubmissionRead(SQLModel):
    id: UUID
    file_url: str
    file_name: Optional[str] = None
    description: Optional[str] = None
    drawing_type: Optional[DrawingType] = None
    submitted_at: datetime
    submitted_by: str


class StandListItem(SQLModel):
    id: UUID
    partner_id: UUID
    booth_number: Optional[str] = None
    booth_construction_type: Optional[BoothType] = None
    status: StandStatus
    submission_deadline: Optional[date] = None
    is_overdue: bool
    artwork_count: int
    updated_at: datetime


class StandRead(SQLModel):
    id: UUID
    partner_id: UUID
    configuration_id: Optional[UUID] = None
    booth_number: Optional[str] = None
    booth_construction_type: Optional[BoothType] = None
    status: StandStatus
    submission_deadline: Optional[date] = None
    technical_drawing_link: Optional[str] = None
    stand_render_link: Optional[str] = None
    technical_specs_link: Optional[str] = None
    branding_areas_link: Optional[str] = None
    exhibitor_manual_link: Optional[str] = None
    admin_notes: Optional[str] = None
    revision_feedback: Optional[str] = None
    revision_history: List[RevisionEntryRead] = []
    artwork_submissions: List[ArtworkSubmissionRead] = []
    logo_submissions: List[FileSubmissionRead] = []
    render_submissions: List[FileSubmissionRead] = []
    technical_drawing_submissions: List[FileSubmissionRead] = []
    av_requirements: AVRequirements
    power_voltage: Optional[str] = None
    power_outlets: Optional[int] = None
    special_requirements: Optional[str] = None
    partner_comments: List[CommentRead] = []
    admin_defined_voltages: List[str] = []

    # Derived
    is_locked: bool
    is_overdue: bool

    created_at: datetime
    updated_at: datetime


class StandStatusSummary(SQLModel):
    total: int
    by_status: Dict[StandStatus, int]
