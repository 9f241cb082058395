import json
import uuid
from datetime import timedelta

from sqlmodel import Session, select

from app.db.core import engine
from app.db.schema import ActivityLog, Notification, NotificationAudience
from tests.helpers import auth_headers, make_token


def _artwork_form(requirement_type="Main Banner", **extra):
    payload = {"submission_type": "file", "requirement_type": requirement_type}
    payload.update(extra)
    return {"payload": json.dumps(payload)}


def _pdf(name="banner.pdf"):
    return {"file": (name, b"%PDF-1.4 test", "application/pdf")}


# ==============================================================================
# HEALTH / AUTH
# ==============================================================================


def test_index_and_readiness(client):
    assert client.get("/api/v1/").json()["status"] == "API is running"
    assert client.get("/api/v1/readiness").json() == {
        "status": "ready", "database": "online"}


def test_missing_or_bad_token_is_401(client, admin):
    assert client.get("/api/v1/stands/").status_code == 401

    expired = make_token(admin, expires_in=timedelta(minutes=-5))
    response = client.get("/api/v1/stands/",
                          headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401

    forged = make_token(admin, secret="not-the-secret")
    response = client.get("/api/v1/stands/",
                          headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401


def test_roles_are_enforced(client, admin, partner):
    assert client.get("/api/v1/stands/", headers=auth_headers(partner)).status_code == 403
    assert client.get("/api/v1/stands/mine", headers=auth_headers(admin)).status_code == 403
    assert client.post("/api/v1/stand-configurations/", json={"name": "Nope"},
                       headers=auth_headers(partner)).status_code == 403


# ==============================================================================
# TEMPLATES
# ==============================================================================


def test_configuration_lifecycle(client, admin, partner):
    headers = auth_headers(admin)

    t1 = client.post("/api/v1/stand-configurations/",
                     json={"name": "T1"}, headers=headers).json()
    client.post(f"/api/v1/stand-configurations/{t1['id']}/set-default", headers=headers)
    t2 = client.post("/api/v1/stand-configurations/",
                     json={"name": "T2"}, headers=headers).json()
    assert t2["status"] == "draft"
    assert t2["available_voltages"] == ["110V", "220V", "380V", "415V"]

    response = client.post(
        f"/api/v1/stand-configurations/{t2['id']}/set-default", headers=headers)
    assert response.status_code == 200
    assert response.json()["is_default"] is True
    assert response.json()["status"] == "active"

    t1 = client.get(f"/api/v1/stand-configurations/{t1['id']}", headers=headers).json()
    assert t1["is_default"] is False

    default = client.get("/api/v1/stand-configurations/default",
                         headers=auth_headers(partner)).json()
    assert default["id"] == t2["id"]

    # Losing the default flag does not deactivate a template
    listed = client.get("/api/v1/stand-configurations/?status=active", headers=headers).json()
    assert sorted(c["name"] for c in listed) == ["T1", "T2"]
    assert client.get("/api/v1/stand-configurations/?status=draft", headers=headers).json() == []


def test_requirement_and_voltage_edits(client, admin):
    headers = auth_headers(admin)
    config = client.post("/api/v1/stand-configurations/",
                         json={"name": "Edits"}, headers=headers).json()
    base = f"/api/v1/stand-configurations/{config['id']}"

    response = client.post(f"{base}/artwork-requirements",
                           json={"name": "Main Banner", "width": 6, "height": 3}, headers=headers)
    assert response.status_code == 201
    assert response.json()["artwork_requirements"][0]["min_resolution_dpi"] == 300

    assert client.delete(f"{base}/artwork-requirements/3", headers=headers).status_code == 404
    assert client.delete(f"{base}/artwork-requirements/0",
                         headers=headers).json()["artwork_requirements"] == []

    assert client.post(f"{base}/voltages", json={"voltage": "220V"},
                       headers=headers).status_code == 400
    voltages = client.delete(f"{base}/voltages/0", headers=headers).json()["available_voltages"]
    assert voltages == ["220V", "380V", "415V"]

    patched = client.patch(base, json={"version": "1.1"}, headers=headers).json()
    assert patched["version"] == "1.1"
    assert patched["version_history"][0]["version"] == "1.0"


def test_default_configuration_missing_is_404(client, partner):
    response = client.get("/api/v1/stand-configurations/default",
                          headers=auth_headers(partner))
    assert response.status_code == 404


# ==============================================================================
# STANDS
# ==============================================================================


def test_scenario_a_over_http(client, admin, partner, default_configuration):
    p, a = auth_headers(partner), auth_headers(admin)

    stand = client.get("/api/v1/stands/mine", headers=p).json()
    assert stand["status"] == "pending_partner_review"
    assert stand["booth_construction_type"] is None
    assert stand["admin_defined_voltages"] == ["110V", "220V"]

    stand = client.put("/api/v1/stands/mine/construction-type",
                       json={"booth_construction_type": "sef_built"}, headers=p).json()
    assert stand["booth_construction_type"] == "sef_built"
    assert stand["status"] == "pending_partner_review"

    response = client.post("/api/v1/stands/mine/artwork",
                           data=_artwork_form(width=1, height=1), files=_pdf(), headers=p)
    assert response.status_code == 201
    stand = response.json()
    assert stand["status"] == "pending_admin_review"
    artwork = stand["artwork_submissions"][0]
    assert (artwork["width"], artwork["height"]) == (6.0, 3.0)
    assert artwork["requirement_name"] == "Main Banner"

    response = client.post(f"/api/v1/stands/{stand['id']}/review",
                           json={"status": "revision_needed"}, headers=a)
    assert response.status_code == 400

    stand = client.post(f"/api/v1/stands/{stand['id']}/review",
                        json={"status": "revision_needed", "feedback": "Increase resolution"},
                        headers=a).json()
    assert stand["revision_feedback"] == "Increase resolution"
    assert [(r["status"], r["feedback"]) for r in stand["revision_history"]] == [
        ("revision_needed", "Increase resolution")]

    stand = client.post("/api/v1/stands/mine/artwork",
                        data=_artwork_form(), files=_pdf("banner-v2.pdf"), headers=p).json()
    assert stand["status"] == "pending_admin_review"
    assert len(stand["artwork_submissions"]) == 2

    stand = client.post(f"/api/v1/stands/{stand['id']}/review",
                        json={"status": "approved"}, headers=a).json()
    assert stand["status"] == "approved"
    assert stand["is_locked"] is True
    assert len(stand["revision_history"]) == 2

    response = client.post("/api/v1/stands/mine/artwork",
                           data=_artwork_form(), files=_pdf(), headers=p)
    assert response.status_code == 409

    # Side effects ran after each response
    with Session(engine) as session:
        partner_notes = session.exec(select(Notification).where(
            Notification.audience == NotificationAudience.PARTNER)).all()
        assert len(partner_notes) == 2
        assert session.exec(select(ActivityLog)).first() is not None


def test_artwork_payload_must_be_json(client, partner, default_configuration):
    response = client.post("/api/v1/stands/mine/artwork",
                           data={"payload": "{not json"}, files=_pdf(),
                           headers=auth_headers(partner))
    assert response.status_code == 422


def test_non_finite_custom_size_is_rejected_before_any_write(client, partner, default_configuration):
    p = auth_headers(partner)

    response = client.post("/api/v1/stands/mine/artwork",
                           data=_artwork_form("Custom", width=float("nan"), height=2),
                           files=_pdf(), headers=p)

    assert response.status_code == 400
    assert client.get("/api/v1/stands/mine", headers=p).json()["artwork_submissions"] == []


def test_file_collections_over_http(client, partner, default_configuration):
    p = auth_headers(partner)

    response = client.post("/api/v1/stands/mine/drawings",
                           data={"drawing_type": "Elevation", "description": "Front"},
                           files={"file": ("front.pdf", b"%PDF", "application/pdf")}, headers=p)
    assert response.status_code == 201
    drawing = response.json()["technical_drawing_submissions"][0]
    assert drawing["drawing_type"] == "Elevation"

    response = client.post("/api/v1/stands/mine/logos",
                           files={"file": ("logo.png", b"\x89PNG", "image/png")}, headers=p)
    logo = response.json()["logo_submissions"][0]

    assert client.delete(f"/api/v1/stands/mine/renders/{logo['id']}",
                         headers=p).status_code == 404
    assert client.delete(f"/api/v1/stands/mine/logos/{logo['id']}",
                         headers=p).status_code == 200
    assert client.get("/api/v1/stands/mine", headers=p).json()["logo_submissions"] == []
    assert client.post("/api/v1/stands/mine/banners", headers=p).status_code == 422


def test_admin_stand_management(client, admin, default_configuration):
    a = auth_headers(admin)
    partner_id = str(uuid.uuid4())

    response = client.post("/api/v1/stands/",
                           json={"partner_id": partner_id, "booth_number": "B-14"}, headers=a)
    assert response.status_code == 201
    stand = response.json()
    assert stand["admin_defined_voltages"] == ["110V", "220V"]

    assert client.post("/api/v1/stands/", json={"partner_id": partner_id},
                       headers=a).status_code == 409

    stand = client.patch(f"/api/v1/stands/{stand['id']}",
                         json={"admin_notes": "Corner booth", "status": "approved"},
                         headers=a).json()
    assert stand["admin_notes"] == "Corner booth"
    assert stand["status"] == "approved"
    assert len(stand["revision_history"]) == 1

    summary = client.get("/api/v1/stands/summary", headers=a).json()
    assert summary["total"] == 1
    assert summary["by_status"]["approved"] == 1

    listed = client.get("/api/v1/stands/?status=approved", headers=a).json()
    assert [s["booth_number"] for s in listed] == ["B-14"]

    assert client.delete(f"/api/v1/stands/{stand['id']}", headers=a).status_code == 200
    assert client.get(f"/api/v1/stands/{stand['id']}", headers=a).status_code == 404


def test_admin_artwork_feedback_is_visible_to_partner(client, admin, partner, default_configuration):
    p, a = auth_headers(partner), auth_headers(admin)
    stand = client.post("/api/v1/stands/mine/artwork",
                        data=_artwork_form(), files=_pdf(), headers=p).json()
    artwork_id = stand["artwork_submissions"][0]["id"]

    response = client.post(f"/api/v1/stands/{stand['id']}/artwork/{artwork_id}/feedback",
                           json={"comment": "Logo too small"}, headers=a)
    assert response.status_code == 201
    client.post(f"/api/v1/stands/mine/artwork/{artwork_id}/comments",
                json={"comment": "Will fix"}, headers=p)

    artwork = client.get("/api/v1/stands/mine", headers=p).json()["artwork_submissions"][0]
    assert [c["comment"] for c in artwork["admin_feedback"]] == ["Logo too small"]
    assert [c["comment"] for c in artwork["comments"]] == ["Will fix"]


# ==============================================================================
# DISCUSSION
# ==============================================================================


def test_discussion_over_http(client, admin, partner, other_partner, default_configuration):
    p, a = auth_headers(partner), auth_headers(admin)
    stand_id = client.get("/api/v1/stands/mine", headers=p).json()["id"]
    url = f"/api/v1/stands/{stand_id}/discussion"

    assert client.post(url, data={"message": "Hi"}, headers=p).status_code == 201
    response = client.post(url, data={"message": "Photo"},
                           files={"attachment": ("booth.jpg", b"\xff\xd8", "image/jpeg")},
                           headers=a)
    assert response.status_code == 201
    assert response.json()["is_admin"] is True

    assert client.post(url, data={"message": "  "}, headers=p).status_code == 400
    assert client.post(url, files={"attachment": ("notes.pdf", b"%PDF", "application/pdf")},
                       headers=p).status_code == 400

    thread = client.get(url, headers=p).json()
    assert thread["total"] == 2
    assert [m["message"] for m in thread["days"][0]["messages"]] == ["Hi", "Photo"]

    assert client.get(url, headers=auth_headers(other_partner)).status_code == 403
