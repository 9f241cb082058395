from typing import List, Optional
from uuid import UUID
from datetime import datetime
from sqlmodel import SQLModel, Field
from app.db.schema import ConfigurationStatus, BoothType

# ==========================================
# SUB-MODELS (Embedded Data)
# ==========================================


class ArtworkRequirement(SQLModel):
    """
    One artwork slot defined by the template.
    Stored inline on the template, addressed by its position in the list.
    """
    name: str = Field(
        min_length=1,
        max_length=100,
        schema_extra={"examples": ["Main Banner"]},
        description="Unique label partners pick when submitting artwork."
    )
    width: float = Field(
        ge=0.0,
        schema_extra={"examples": [6.0]},
        description="Width in meters."
    )
    height: float = Field(
        ge=0.0,
        schema_extra={"examples": [3.0]},
        description="Height in meters."
    )
    accepted_formats: List[str] = Field(
        default_factory=lambda: ["PDF", "AI", "EPS", "PNG"],
        description="File extensions accepted for this slot (case-insensitive)."
    )
    min_resolution_dpi: int = Field(default=300, ge=0)
    color_mode: str = Field(default="CMYK")
    bleed_area_mm: int = Field(default=5, ge=0)
    max_file_size_mb: int = Field(default=50, gt=0)
    is_required: bool = Field(default=False)
    description: Optional[str] = Field(default=None, max_length=500)


class Guidelines(SQLModel):
    file_formats: str = "PDF, PNG, JPEG, AI, EPS"
    min_resolution: str = "300 DPI"
    color_mode: str = "CMYK"
    bleed_area: str = "5mm minimum"
    review_time: str = "3-5 business days"


class VersionHistoryEntry(SQLModel):
    version: str
    changed_at: datetime
    change_notes: str


# ==========================================
# WRITE MODELS (Action Payloads)
# ==========================================


class StandConfigurationCreate(SQLModel):
    name: str = Field(
        min_length=2,
        max_length=150,
        schema_extra={"examples": ["Standard Booth 2026"]},
        description="Name of the new template. Everything else starts from defaults."
    )


class StandConfigurationUpdate(SQLModel):
    """
    Partial update. Lists are whole-list replacements.
    Changing `version` appends the previous label to the version history.
    """
    name: Optional[str] = Field(default=None, min_length=2, max_length=150)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[ConfigurationStatus] = None
    version: Optional[str] = Field(default=None, min_length=1, max_length=20)
    artwork_requirements: Optional[List[ArtworkRequirement]] = None
    available_voltages: Optional[List[str]] = None
    guidelines: Optional[Guidelines] = None
    applicable_booth_types: Optional[List[BoothType]] = None


class VoltageInput(SQLModel):
    voltage: str = Field(
        min_length=1,
        max_length=20,
        schema_extra={"examples": ["240V"]}
    )


# ==========================================
# READ MODELS
# ==========================================


class StandConfigurationRead(SQLModel):
    id: UUID
    name: str
    description: Optional[str] = None
    status: ConfigurationStatus
    version: str
    version_history: List[VersionHistoryEntry] = []
    artwork_requirements: List[ArtworkRequirement] = []
    available_voltages: List[str] = []
    guidelines: Guidelines
    applicable_booth_types: List[BoothType] = []
    is_default: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
