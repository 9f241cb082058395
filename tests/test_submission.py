import uuid
from pathlib import Path

import pytest
from fastapi import HTTPException
from sqlmodel import select

from app.core.config import settings
from app.core.exceptions import (
    StandLockedError, WorkflowValidationError, UnknownArtworkRequirementError,
    SubmissionNotFoundError
)
from app.db.schema import (
    Stand, StandStatus, StandRevision, BoothType, SubmissionType,
    FileSubmissionKind, DrawingType, ArtworkSubmission
)
from app.models.stand import AVPowerUpdate, AVRequirements, ConstructionTypeInput
from app.models.submission import ArtworkSubmissionCreate, FileSubmissionCreate
from app.models.stand_configuration import StandConfigurationUpdate, ArtworkRequirement
from app.services.review import ReviewWorkflowService
from app.services.stand_configuration import StandConfigurationService
from app.services.submission import SubmissionService
from tests.helpers import make_upload


def _banner(**overrides) -> ArtworkSubmissionCreate:
    values = {"submission_type": SubmissionType.FILE, "requirement_type": "Main Banner"}
    values.update(overrides)
    return ArtworkSubmissionCreate(**values)


def _lock(session, admin, background_tasks, stand, status=StandStatus.APPROVED):
    ReviewWorkflowService(session).review_stand(
        admin, stand.id, status, None, background_tasks)
    session.refresh(stand)


# ==============================================================================
# CONSTRUCTION TYPE
# ==============================================================================


def test_first_visit_creates_stand_and_construction_type_keeps_status(
        session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    stand = service.stands.get_or_create_mine(partner, background_tasks)
    assert stand.status == StandStatus.PENDING_PARTNER_REVIEW
    assert stand.booth_construction_type is None
    assert stand.admin_defined_voltages == ["110V", "220V"]

    stand = service.set_construction_type(
        partner, ConstructionTypeInput(booth_construction_type=BoothType.SEF_BUILT), background_tasks)

    assert stand.booth_construction_type == BoothType.SEF_BUILT
    assert stand.status == StandStatus.PENDING_PARTNER_REVIEW


def test_construction_type_is_fixed_once_submissions_started(
        session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)
    service.submit_artwork(partner, _banner(), make_upload(), background_tasks)

    with pytest.raises(HTTPException) as exc:
        service.set_construction_type(
            partner, ConstructionTypeInput(booth_construction_type=BoothType.PARTNER_BUILT), background_tasks)
    assert exc.value.status_code == 409


# ==============================================================================
# ARTWORK
# ==============================================================================


def test_template_dimensions_win_over_client_dimensions(
        session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    artwork = service.submit_artwork(
        partner, _banner(width=1.0, height=99.0), make_upload(), background_tasks)

    assert artwork.width == 6.0
    assert artwork.height == 3.0
    assert artwork.artwork_type == "Main Banner"
    assert artwork.requirement_name == "Main Banner"
    assert artwork.file_url.startswith("http://testserver/static/artwork/")
    assert artwork.file_url.endswith(".pdf")


def test_submission_moves_stand_to_admin_review_without_revision(
        session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    artwork = service.submit_artwork(partner, _banner(), make_upload(), background_tasks)

    stand = session.get(Stand, artwork.stand_id)
    assert stand.status == StandStatus.PENDING_ADMIN_REVIEW
    assert stand.revision_history == []


def test_custom_artwork_keeps_partner_dimensions(
        session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    artwork = service.submit_artwork(
        partner,
        _banner(submission_type=SubmissionType.LINK, requirement_type="Custom",
                link_url="https://drive.example/booth-wall", width=2.5, height=1.2),
        None, background_tasks)

    assert (artwork.width, artwork.height) == (2.5, 1.2)
    assert artwork.artwork_type == "Custom"
    assert artwork.requirement_name is None
    assert artwork.link_url == "https://drive.example/booth-wall"
    assert artwork.file_url is None


@pytest.mark.parametrize("width,height", [
    (None, 2.0), (2.0, None), (0, 1.0), (1.0, -3.0),
    (float("nan"), 2.0), (2.0, float("inf")),
])
def test_custom_artwork_needs_positive_dimensions(
        session, partner, background_tasks, default_configuration, width, height):
    service = SubmissionService(session)

    with pytest.raises(WorkflowValidationError):
        service.submit_artwork(
            partner, _banner(requirement_type="Custom", width=width, height=height),
            make_upload(), background_tasks)

    assert session.exec(select(ArtworkSubmission)).all() == []


def test_unknown_requirement_is_rejected(session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    with pytest.raises(UnknownArtworkRequirementError):
        service.submit_artwork(partner, _banner(requirement_type="Roof Sign"),
                               make_upload(), background_tasks)


@pytest.mark.parametrize("data,file", [
    ({"submission_type": SubmissionType.FILE}, None),
    ({"submission_type": SubmissionType.LINK}, None),
    ({"submission_type": SubmissionType.LINK, "link_url": "   "}, None),
    ({"submission_type": SubmissionType.FILE, "link_url": "https://x.example"}, "upload"),
])
def test_file_or_link_must_be_supplied_exactly_once(
        session, partner, background_tasks, default_configuration, data, file):
    service = SubmissionService(session)
    upload = make_upload() if file else None

    with pytest.raises(WorkflowValidationError):
        service.submit_artwork(partner, _banner(**data), upload, background_tasks)

    stand = service.stands.get_partner_stand(partner.partner_id)
    assert stand.status == StandStatus.PENDING_PARTNER_REVIEW


def test_requirement_formats_are_enforced(session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    with pytest.raises(WorkflowValidationError) as exc:
        service.submit_artwork(partner, _banner(),
                               make_upload("banner.eps", content_type="application/postscript"),
                               background_tasks)
    assert "PDF" in exc.value.detail


def test_stored_dimensions_are_a_snapshot(session, admin, partner, background_tasks, default_configuration):
    service = SubmissionService(session)
    artwork = service.submit_artwork(partner, _banner(), make_upload(), background_tasks)

    StandConfigurationService(session).update_configuration(
        admin, default_configuration.id,
        StandConfigurationUpdate(artwork_requirements=[
            ArtworkRequirement(name="Main Banner", width=8.0, height=4.0)]),
        background_tasks)

    session.refresh(artwork)
    assert (artwork.width, artwork.height) == (6.0, 3.0)


def test_artwork_is_deleted_by_id(session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)
    first = service.submit_artwork(partner, _banner(), make_upload(), background_tasks)
    second = service.submit_artwork(partner, _banner(requirement_type="Side Panel"),
                                    make_upload("side.png", content_type="image/png"),
                                    background_tasks)

    service.delete_artwork(partner, first.id, background_tasks)

    remaining = session.exec(select(ArtworkSubmission)).all()
    assert [a.id for a in remaining] == [second.id]


def test_cannot_delete_another_partners_artwork(
        session, partner, other_partner, background_tasks, default_configuration):
    service = SubmissionService(session)
    artwork = service.submit_artwork(partner, _banner(), make_upload(), background_tasks)

    with pytest.raises(SubmissionNotFoundError):
        service.delete_artwork(other_partner, artwork.id, background_tasks)
    assert session.get(ArtworkSubmission, artwork.id) is not None


def test_partner_comment_on_artwork(session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)
    artwork = service.submit_artwork(partner, _banner(), make_upload(), background_tasks)

    entry = service.comment_on_artwork(partner, artwork.id, " Final version ", background_tasks)

    assert entry.comment == "Final version"
    assert entry.is_admin_feedback is False
    session.refresh(artwork)
    assert len(artwork.comments) == 1


# ==============================================================================
# LOGOS / RENDERS / DRAWINGS
# ==============================================================================


def test_technical_drawing_needs_drawing_type(session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    with pytest.raises(WorkflowValidationError):
        service.submit_file(partner, FileSubmissionKind.TECHNICAL_DRAWING,
                            FileSubmissionCreate(), make_upload("plan.dwg"), background_tasks)

    entry = service.submit_file(
        partner, FileSubmissionKind.TECHNICAL_DRAWING,
        FileSubmissionCreate(drawing_type=DrawingType.FLOOR_PLAN), make_upload("plan.dwg"),
        background_tasks)
    assert entry.drawing_type == DrawingType.FLOOR_PLAN
    assert "/static/drawings/" in entry.file_url


def test_logo_rejects_unknown_extension(session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    with pytest.raises(WorkflowValidationError):
        service.submit_file(partner, FileSubmissionKind.LOGO, FileSubmissionCreate(),
                            make_upload("logo.exe"), background_tasks)


def test_file_delete_checks_collection(session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)
    logo = service.submit_file(partner, FileSubmissionKind.LOGO, FileSubmissionCreate(),
                               make_upload("logo.png", content_type="image/png"), background_tasks)

    with pytest.raises(SubmissionNotFoundError):
        service.delete_file(partner, FileSubmissionKind.RENDER, logo.id, background_tasks)

    service.delete_file(partner, FileSubmissionKind.LOGO, logo.id, background_tasks)
    with pytest.raises(SubmissionNotFoundError):
        service.delete_file(partner, FileSubmissionKind.LOGO, logo.id, background_tasks)


# ==============================================================================
# AV / POWER
# ==============================================================================


def test_av_power_overwrites_and_hands_off(session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    stand = service.update_av_power(partner, AVPowerUpdate(
        av_requirements=AVRequirements(equipment_list="2x screens"),
        power_voltage="220V",
        power_outlets=4
    ), background_tasks)

    assert stand.av_requirements == {"equipment_list": "2x screens", "special_instructions": ""}
    assert stand.power_voltage == "220V"
    assert stand.power_outlets == 4
    assert stand.status == StandStatus.PENDING_ADMIN_REVIEW


def test_av_power_rejects_unlisted_voltage(session, partner, background_tasks, default_configuration):
    service = SubmissionService(session)

    with pytest.raises(WorkflowValidationError):
        service.update_av_power(partner, AVPowerUpdate(power_voltage="415V"), background_tasks)


# ==============================================================================
# LOCK ENFORCEMENT
# ==============================================================================


@pytest.mark.parametrize("locked_status", [StandStatus.APPROVED, StandStatus.COMPLETED])
def test_locked_stand_rejects_every_partner_write(
        session, admin, partner, background_tasks, default_configuration, locked_status):
    service = SubmissionService(session)
    artwork = service.submit_artwork(partner, _banner(), make_upload(), background_tasks)
    logo = service.submit_file(partner, FileSubmissionKind.LOGO, FileSubmissionCreate(),
                               make_upload("logo.png", content_type="image/png"), background_tasks)
    stand = session.get(Stand, artwork.stand_id)
    _lock(session, admin, background_tasks, stand, locked_status)

    attempts = [
        lambda: service.submit_artwork(partner, _banner(), make_upload(), background_tasks),
        lambda: service.delete_artwork(partner, artwork.id, background_tasks),
        lambda: service.comment_on_artwork(partner, artwork.id, "late note", background_tasks),
        lambda: service.submit_file(partner, FileSubmissionKind.RENDER, FileSubmissionCreate(),
                                    make_upload("render.jpg", content_type="image/jpeg"), background_tasks),
        lambda: service.delete_file(partner, FileSubmissionKind.LOGO, logo.id, background_tasks),
        lambda: service.update_av_power(partner, AVPowerUpdate(power_outlets=9), background_tasks),
        lambda: service.set_construction_type(
            partner, ConstructionTypeInput(booth_construction_type=BoothType.PARTNER_BUILT), background_tasks),
    ]
    for attempt in attempts:
        with pytest.raises(StandLockedError) as exc:
            attempt()
        assert exc.value.status_code == 409

    session.refresh(stand)
    assert stand.status == locked_status
    assert [a.id for a in stand.artwork_submissions] == [artwork.id]
    assert [f.id for f in stand.file_submissions] == [logo.id]
    assert artwork.comments == []
    assert stand.power_outlets is None


def test_failed_write_removes_uploaded_file(
        session, partner, background_tasks, default_configuration, monkeypatch):
    service = SubmissionService(session)
    service.stands.get_or_create_mine(partner, background_tasks)
    bucket = Path(settings.static_dir) / "artwork"
    before = set(bucket.glob("*"))

    def broken_commit():
        raise RuntimeError("database went away")

    monkeypatch.setattr(session, "commit", broken_commit)

    with pytest.raises(HTTPException) as exc:
        service.submit_artwork(partner, _banner(), make_upload(), background_tasks)

    assert exc.value.status_code == 500
    assert set(bucket.glob("*")) == before


def test_scenario_a(session, admin, partner, background_tasks, default_configuration):
    submissions = SubmissionService(session)
    review = ReviewWorkflowService(session)

    stand = submissions.stands.get_or_create_mine(partner, background_tasks)
    assert stand.status == StandStatus.PENDING_PARTNER_REVIEW
    assert stand.booth_construction_type is None

    stand = submissions.set_construction_type(
        partner, ConstructionTypeInput(booth_construction_type=BoothType.SEF_BUILT), background_tasks)
    assert stand.status == StandStatus.PENDING_PARTNER_REVIEW

    submissions.submit_artwork(partner, _banner(), make_upload(), background_tasks)
    session.refresh(stand)
    assert stand.status == StandStatus.PENDING_ADMIN_REVIEW

    stand = review.review_stand(admin, stand.id, StandStatus.REVISION_NEEDED,
                                "Increase resolution", background_tasks)
    assert [(r.status, r.feedback) for r in stand.revision_history] == [
        (StandStatus.REVISION_NEEDED, "Increase resolution")]

    submissions.submit_artwork(partner, _banner(), make_upload("banner-v2.pdf"), background_tasks)
    session.refresh(stand)
    assert stand.status == StandStatus.PENDING_ADMIN_REVIEW

    stand = review.review_stand(admin, stand.id, StandStatus.APPROVED, None, background_tasks)
    assert stand.status == StandStatus.APPROVED

    with pytest.raises(StandLockedError):
        submissions.submit_artwork(partner, _banner(), make_upload(), background_tasks)

    revisions = session.exec(select(StandRevision).where(
        StandRevision.stand_id == stand.id)).all()
    assert len(revisions) == 2
