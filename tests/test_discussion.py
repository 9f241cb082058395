from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi import HTTPException
from sqlmodel import select

from app.core.config import settings
from app.core.exceptions import WorkflowValidationError, InvalidAttachmentError
from app.db.schema import Stand, StandMessage, StandStatus
from app.services.discussion import DiscussionService
from app.services.review import ReviewWorkflowService
from tests.helpers import make_upload


@pytest.fixture
def stand(session, partner):
    stand = Stand(partner_id=partner.partner_id)
    session.add(stand)
    session.commit()
    session.refresh(stand)
    return stand


def _messages(session, stand):
    return session.exec(select(StandMessage).where(
        StandMessage.stand_id == stand.id).order_by(StandMessage.created_at)).all()


def test_thread_only_grows_and_entries_never_change(session, admin, partner, background_tasks, stand):
    service = DiscussionService(session)
    snapshots = []

    for actor, text in [(partner, "Is the wall 3m high?"), (admin, "Yes, 3m."),
                        (partner, "Thanks!"), (partner, "One more question")]:
        service.send_message(actor, stand.id, text, None, background_tasks)
        current = [(m.id, m.created_at, m.sender_email) for m in _messages(session, stand)]
        assert current[:len(snapshots)] == snapshots
        assert len(current) == len(snapshots) + 1
        snapshots = current


def test_sender_identity_is_recorded(session, admin, partner, background_tasks, stand):
    service = DiscussionService(session)

    partner_msg = service.send_message(partner, stand.id, " Hello ", None, background_tasks)
    admin_msg = service.send_message(admin, stand.id, "Welcome", None, background_tasks)

    assert partner_msg.message == "Hello"
    assert partner_msg.sender_email == partner.email
    assert partner_msg.sender_name == partner.name
    assert partner_msg.sender_title == partner.title
    assert partner_msg.is_admin is False
    assert admin_msg.is_admin is True


@pytest.mark.parametrize("text", [None, "", "   "])
def test_empty_message_without_attachment_is_rejected(session, partner, background_tasks, stand, text):
    service = DiscussionService(session)

    with pytest.raises(WorkflowValidationError):
        service.send_message(partner, stand.id, text, None, background_tasks)

    assert _messages(session, stand) == []


def test_image_attachment_only_message(session, partner, background_tasks, stand):
    service = DiscussionService(session)

    entry = service.send_message(
        partner, stand.id, None,
        make_upload("booth.png", b"\x89PNG fake", "image/png"), background_tasks)

    assert entry.message == ""
    assert entry.attachment_name == "booth.png"
    assert entry.attachment_url.startswith("http://testserver/static/attachments/")


def test_non_image_attachment_is_rejected(session, partner, background_tasks, stand):
    service = DiscussionService(session)

    with pytest.raises(InvalidAttachmentError):
        service.send_message(partner, stand.id, "See attached", make_upload(), background_tasks)

    assert _messages(session, stand) == []


def test_oversized_attachment_is_rejected(session, partner, background_tasks, stand):
    service = DiscussionService(session)
    too_big = b"0" * (settings.max_attachment_size_mb * 1024 * 1024 + 1)

    with pytest.raises(InvalidAttachmentError):
        service.send_message(partner, stand.id, None,
                             make_upload("huge.jpg", too_big, "image/jpeg"), background_tasks)


def test_failed_send_removes_attachment(session, partner, background_tasks, stand, monkeypatch):
    bucket = Path(settings.static_dir) / "attachments"
    before = set(bucket.glob("*"))

    def broken_commit():
        raise RuntimeError("database went away")

    monkeypatch.setattr(session, "commit", broken_commit)

    with pytest.raises(HTTPException):
        DiscussionService(session).send_message(
            partner, stand.id, "Photo", make_upload("booth.png", b"\x89PNG", "image/png"),
            background_tasks)

    assert set(bucket.glob("*")) == before


def test_discussion_stays_open_on_locked_stand(session, admin, partner, background_tasks, stand):
    ReviewWorkflowService(session).review_stand(
        admin, stand.id, StandStatus.COMPLETED, None, background_tasks)
    service = DiscussionService(session)

    service.send_message(partner, stand.id, "Thanks for everything", None, background_tasks)
    service.add_partner_comment(partner, "Great event", background_tasks)

    assert len(_messages(session, stand)) == 1


def test_partner_cannot_read_another_stand(session, other_partner, stand):
    service = DiscussionService(session)

    with pytest.raises(HTTPException) as exc:
        service.get_thread(other_partner, stand.id)
    assert exc.value.status_code == 403


def test_thread_is_grouped_by_day(session, admin, partner, stand):
    yesterday = datetime(2026, 5, 10, 23, 50)
    for offset, actor in [(0, partner), (5, admin), (20, partner)]:
        session.add(StandMessage(
            stand_id=stand.id,
            message=f"at +{offset}m",
            sender_email=actor.email,
            sender_name=actor.name,
            sender_title=actor.title,
            is_admin=actor.is_admin,
            created_at=yesterday + timedelta(minutes=offset)
        ))
    session.commit()

    thread = DiscussionService(session).get_thread(admin, stand.id)

    assert thread.total == 3
    assert [d.day.isoformat() for d in thread.days] == ["2026-05-10", "2026-05-11"]
    assert [m.message for m in thread.days[0].messages] == ["at +0m", "at +5m"]
    assert [m.message for m in thread.days[1].messages] == ["at +20m"]
