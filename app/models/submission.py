from typing import List, Literal, Optional, Union
from sqlmodel import SQLModel, Field
from app.db.schema import SubmissionType, DrawingType

CUSTOM_ARTWORK = "Custom"


class ArtworkSubmissionCreate(SQLModel):
    """
    JSON part of the multipart artwork upload.
    `requirement_type` is a requirement name from the stand's template or
    the literal 'Custom'; only custom artwork may carry its own dimensions.
    """
    submission_type: SubmissionType = Field(
        schema_extra={"examples": ["file", "link"]}
    )
    requirement_type: str = Field(
        min_length=1,
        max_length=100,
        schema_extra={"examples": ["Main Banner", "Custom"]}
    )
    link_url: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Required when submission_type is 'link'."
    )
    width: Optional[float] = Field(
        default=None,
        description="Meters. Required (> 0) for 'Custom', ignored otherwise."
    )
    height: Optional[float] = Field(
        default=None,
        description="Meters. Required (> 0) for 'Custom', ignored otherwise."
    )
    description: Optional[str] = Field(default=None, max_length=2000)


class TemplateBoundArtwork(SQLModel):
    """Dimensions copied from a template requirement."""
    kind: Literal["template"] = "template"
    requirement_name: str
    width: float
    height: float
    max_file_size_mb: Optional[int] = None
    accepted_formats: List[str] = []


class CustomArtwork(SQLModel):
    """Dimensions supplied by the partner."""
    kind: Literal["custom"] = "custom"
    width: float
    height: float


ArtworkDimensions = Union[TemplateBoundArtwork, CustomArtwork]


class FileSubmissionCreate(SQLModel):
    description: Optional[str] = Field(default=None, max_length=2000)
    drawing_type: Optional[DrawingType] = None
