"""
Pure helpers shared by the stand services: lock and overdue derivation,
artwork dimension resolution and voltage options.
"""
import math
from datetime import date
from itertools import groupby
from typing import Any, Dict, Iterable, List, Optional

from app.db.schema import Stand, StandConfiguration, StandStatus, LOCKED_STATUSES, StandMessage
from app.core.exceptions import WorkflowValidationError, UnknownArtworkRequirementError
from app.models.submission import (
    ArtworkDimensions, CustomArtwork, TemplateBoundArtwork, CUSTOM_ARTWORK
)


def is_locked(status: StandStatus) -> bool:
    return status in LOCKED_STATUSES


def is_overdue(stand: Stand, today: Optional[date] = None) -> bool:
    if not stand.submission_deadline or is_locked(stand.status):
        return False
    return stand.submission_deadline < (today or date.today())


def _positive(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def find_requirement(requirements: Iterable[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
    return next((r for r in requirements if r.get("name") == name), None)


def resolve_artwork_dimensions(
    requirement_type: str,
    width: Optional[float],
    height: Optional[float],
    configuration: Optional[StandConfiguration]
) -> ArtworkDimensions:
    """
    Decides where an artwork's size comes from.
    A named requirement always wins over whatever size the partner typed;
    only 'Custom' artwork keeps partner dimensions, and they must be positive.
    """
    requirement_type = requirement_type.strip()
    if not requirement_type:
        raise WorkflowValidationError("Artwork type is required.")

    if requirement_type == CUSTOM_ARTWORK:
        if not _positive(width) or not _positive(height):
            raise WorkflowValidationError(
                "Custom artwork needs a width and height greater than zero.")
        return CustomArtwork(width=width, height=height)

    requirements = configuration.artwork_requirements if configuration else []
    requirement = find_requirement(requirements, requirement_type)
    if requirement is None:
        raise UnknownArtworkRequirementError(requirement_type)

    return TemplateBoundArtwork(
        requirement_name=requirement["name"],
        width=float(requirement.get("width") or 0),
        height=float(requirement.get("height") or 0),
        max_file_size_mb=requirement.get("max_file_size_mb"),
        accepted_formats=requirement.get("accepted_formats") or []
    )


def voltage_options(stand: Stand, configuration: Optional[StandConfiguration]) -> List[str]:
    """Stand-specific voltages override the template list."""
    if stand.admin_defined_voltages:
        return list(stand.admin_defined_voltages)
    if configuration:
        return list(configuration.available_voltages or [])
    return []


def group_messages_by_day(messages: List[StandMessage]):
    """Yields (day, [messages]) in insertion order."""
    for day, batch in groupby(messages, key=lambda m: m.created_at.date()):
        yield day, list(batch)
