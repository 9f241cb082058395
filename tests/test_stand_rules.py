from datetime import date

import pytest

from app.core.exceptions import UnknownArtworkRequirementError
from app.db.schema import Stand, StandConfiguration, StandStatus
from app.models.submission import TemplateBoundArtwork, CustomArtwork
from app.utils.stand_rules import (
    is_locked, is_overdue, resolve_artwork_dimensions, voltage_options
)


@pytest.mark.parametrize("status,locked", [
    (StandStatus.PENDING_PARTNER_REVIEW, False),
    (StandStatus.PENDING_ADMIN_REVIEW, False),
    (StandStatus.REVISION_NEEDED, False),
    (StandStatus.APPROVED, True),
    (StandStatus.COMPLETED, True),
])
def test_is_locked(status, locked):
    assert is_locked(status) is locked


def test_overdue_only_for_open_stands_past_deadline():
    today = date(2026, 6, 1)
    stand = Stand(submission_deadline=date(2026, 5, 31))

    assert is_overdue(stand, today) is True
    stand.status = StandStatus.APPROVED
    assert is_overdue(stand, today) is False
    assert is_overdue(Stand(submission_deadline=today), today) is False
    assert is_overdue(Stand(), today) is False


def test_named_requirement_resolves_to_template_bound():
    config = StandConfiguration(name="T", artwork_requirements=[
        {"name": "Main Banner", "width": 6, "height": 3,
         "accepted_formats": ["PDF"], "max_file_size_mb": 20}])

    dims = resolve_artwork_dimensions("Main Banner", 1, 1, config)

    assert isinstance(dims, TemplateBoundArtwork)
    assert (dims.width, dims.height) == (6.0, 3.0)
    assert dims.accepted_formats == ["PDF"]
    assert dims.max_file_size_mb == 20


def test_custom_resolves_to_partner_dimensions():
    dims = resolve_artwork_dimensions("Custom", 2.5, 1.0, None)

    assert isinstance(dims, CustomArtwork)
    assert (dims.width, dims.height) == (2.5, 1.0)


def test_requirement_lookup_without_template_fails():
    with pytest.raises(UnknownArtworkRequirementError):
        resolve_artwork_dimensions("Main Banner", None, None, None)


def test_stand_voltages_override_template():
    config = StandConfiguration(name="T", available_voltages=["110V", "220V"])

    assert voltage_options(Stand(admin_defined_voltages=["240V"]), config) == ["240V"]
    assert voltage_options(Stand(admin_defined_voltages=[]), config) == ["110V", "220V"]
    assert voltage_options(Stand(), None) == []
