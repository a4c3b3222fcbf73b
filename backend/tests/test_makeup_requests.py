"""Makeup request submission and the admin review workflow."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from dentalce.models.makeup_request import MakeupRequest
from dentalce.models.registration import SeminarRegistration
from dentalce.services import makeup_service
from tests.conftest import auth_headers, check_in

URL = "/api/seminars/makeup-request"


def _attend(client, registration, session_ids):
    staff = auth_headers(client, "staff@gps.test")
    for session_id in session_ids:
        assert check_in(client, staff, registration.registration_id, session_id).status_code == 200


def _submit(client, headers, registration, missed, requested=None, reason="Family emergency"):
    payload = {
        "registration_id": registration.registration_id,
        "missed_session_id": missed.session_id,
        "reason": reason,
    }
    if requested is not None:
        payload["requested_session_id"] = requested.session_id
    return client.post(URL, json=payload, headers=headers)


def test_status_lists_missed_and_future_sessions(client, seed_users, seed_registration, sessions):
    _attend(client, seed_registration, [sessions[0].session_id, sessions[1].session_id])
    headers = auth_headers(client, "dr.lee@gps.test")
    resp = client.get(f"{URL}/status?registration_id={seed_registration.registration_id}", headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["state"] == "eligible"
    assert data["can_submit"] is True
    assert [s["session_number"] for s in data["missed_sessions"]] == [3, 4]
    assert [s["session_number"] for s in data["future_sessions"]] == [5, 6, 7, 8, 9, 10]


def test_perfect_attendance_cannot_submit(client, seed_users, seed_registration, sessions):
    _attend(client, seed_registration, [s.session_id for s in sessions[:4]])
    headers = auth_headers(client, "dr.lee@gps.test")
    status = client.get(f"{URL}/status?registration_id={seed_registration.registration_id}", headers=headers)
    assert status.json()["data"]["state"] == "perfect_attendance"

    resp = _submit(client, headers, seed_registration, sessions[0])
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_submit_creates_pending_request(client, db, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    resp = _submit(client, headers, seed_registration, sessions[2], sessions[5])
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["status"] == "pending"
    assert body["data"]["missed_session"]["session_number"] == 3
    assert body["data"]["requested_session"]["session_number"] == 6

    listed = client.get(f"{URL}?registration_id={seed_registration.registration_id}", headers=headers)
    assert listed.status_code == 200
    assert len(listed.json()["data"]) == 1


def test_missing_missed_session_is_rejected_without_write(client, db, seed_users, seed_registration):
    headers = auth_headers(client, "dr.lee@gps.test")
    resp = client.post(URL, json={"registration_id": seed_registration.registration_id}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "missed_session_id is required"
    assert db.query(MakeupRequest).count() == 0


def test_missing_registration_id_is_rejected(client, seed_users):
    headers = auth_headers(client, "dr.lee@gps.test")
    resp = client.post(URL, json={"missed_session_id": 1}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "registration_id is required"


def test_second_request_while_pending_conflicts(client, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    assert _submit(client, headers, seed_registration, sessions[2]).status_code == 201

    resp = _submit(client, headers, seed_registration, sessions[3])
    assert resp.status_code == 409

    status = client.get(f"{URL}/status?registration_id={seed_registration.registration_id}", headers=headers)
    data = status.json()["data"]
    assert data["state"] == "request_in_flight"
    assert len(data["missed_sessions"]) == 4
    assert data["active_request"]["status"] == "pending"


def test_cannot_submit_for_someone_elses_registration(client, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.kim@gps.test")
    resp = _submit(client, headers, seed_registration, sessions[0])
    assert resp.status_code == 403


def test_requested_session_must_be_upcoming(client, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    resp = _submit(client, headers, seed_registration, sessions[0], sessions[1])
    assert resp.status_code == 400


def test_inactive_registration_cannot_submit(client, db, seed_users, seed_registration, sessions):
    seed_registration.status = "on_hold"
    db.commit()
    headers = auth_headers(client, "dr.lee@gps.test")
    resp = _submit(client, headers, seed_registration, sessions[0])
    assert resp.status_code == 400


def test_approve_consumes_makeup_and_sends_email(client, db, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    request_id = _submit(client, headers, seed_registration, sessions[2], sessions[5]).json()["data"]["request_id"]

    staff = auth_headers(client, "staff@gps.test")
    with patch("dentalce.services.email_service.send_makeup_review_email") as send:
        resp = client.patch(
            f"/api/admin/seminars/makeup-requests/{request_id}",
            json={"action": "approve", "notes": "ok"},
            headers=staff,
        )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "approved"
    assert data["reviewed_by"] == seed_users["staff"].user_id
    send.assert_called_once()
    assert send.call_args.kwargs["approved"] is True

    db.expire_all()
    registration = db.get(SeminarRegistration, seed_registration.registration_id)
    assert registration.makeup_used is True

    status = client.get(f"{URL}/status?registration_id={seed_registration.registration_id}", headers=headers)
    assert status.json()["data"]["state"] == "already_used"


def test_deny_records_reason(client, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    request_id = _submit(client, headers, seed_registration, sessions[2]).json()["data"]["request_id"]

    admin = auth_headers(client, "admin@gps.test")
    resp = client.patch(
        f"/api/admin/seminars/makeup-requests/{request_id}",
        json={"action": "deny", "denial_reason": "Outside policy window"},
        headers=admin,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "denied"
    assert resp.json()["data"]["denial_reason"] == "Outside policy window"

    # a denied request no longer blocks a new submission
    assert _submit(client, headers, seed_registration, sessions[3]).status_code == 201


def test_cancelling_approved_request_restores_makeup(client, db, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    request_id = _submit(client, headers, seed_registration, sessions[2]).json()["data"]["request_id"]
    admin = auth_headers(client, "admin@gps.test")
    client.patch(f"/api/admin/seminars/makeup-requests/{request_id}", json={"action": "approve"}, headers=admin)

    resp = client.patch(f"/api/admin/seminars/makeup-requests/{request_id}", json={"action": "cancel"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "cancelled"
    db.expire_all()
    assert db.get(SeminarRegistration, seed_registration.registration_id).makeup_used is False


def test_invalid_transition_and_action(client, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    request_id = _submit(client, headers, seed_registration, sessions[2]).json()["data"]["request_id"]
    admin = auth_headers(client, "admin@gps.test")

    resp = client.patch(f"/api/admin/seminars/makeup-requests/{request_id}", json={"action": "complete"}, headers=admin)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Cannot complete request with status: pending"

    resp = client.patch(f"/api/admin/seminars/makeup-requests/{request_id}", json={"action": "archive"}, headers=admin)
    assert resp.status_code == 400


def test_admin_list_has_counts(client, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    _submit(client, headers, seed_registration, sessions[2])
    admin = auth_headers(client, "admin@gps.test")
    resp = client.get("/api/admin/seminars/makeup-requests", headers=admin)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 1
    assert body["counts"]["pending"] == 1
    assert set(body["counts"]) == {"pending", "approved", "denied", "completed", "cancelled", "expired"}


def test_delete_only_closed_or_pending(client, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    request_id = _submit(client, headers, seed_registration, sessions[2]).json()["data"]["request_id"]
    admin = auth_headers(client, "admin@gps.test")
    client.patch(f"/api/admin/seminars/makeup-requests/{request_id}", json={"action": "approve"}, headers=admin)

    resp = client.delete(f"/api/admin/seminars/makeup-requests/{request_id}", headers=admin)
    assert resp.status_code == 400

    client.patch(f"/api/admin/seminars/makeup-requests/{request_id}", json={"action": "expire"}, headers=admin)
    resp = client.delete(f"/api/admin/seminars/makeup-requests/{request_id}", headers=admin)
    assert resp.status_code == 200
    assert client.get(f"/api/admin/seminars/makeup-requests/{request_id}", headers=admin).status_code == 404


def _pending_row(registration, missed, status="pending"):
    return MakeupRequest(
        registration_id=registration.registration_id,
        user_id=registration.user_id,
        seminar_id=registration.seminar_id,
        missed_session_id=missed.session_id,
        status=status,
    )


def test_active_request_index_allows_one_in_flight(db, seed_registration, sessions):
    db.add(_pending_row(seed_registration, sessions[0]))
    db.add(_pending_row(seed_registration, sessions[1]))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    # closed requests do not count against the live one
    db.add(_pending_row(seed_registration, sessions[0], status="denied"))
    db.add(_pending_row(seed_registration, sessions[1], status="cancelled"))
    db.add(_pending_row(seed_registration, sessions[2], status="approved"))
    db.commit()
    assert db.query(MakeupRequest).count() == 3


def test_concurrent_submission_gets_conflict(client, db, seed_users, seed_registration, sessions):
    headers = auth_headers(client, "dr.lee@gps.test")
    real_evaluate = makeup_service.evaluate_registration

    def evaluate_then_lose_race(session, registration, today):
        eligibility = real_evaluate(session, registration, today)
        # another submission commits between the eligibility read and our insert
        db.add(_pending_row(seed_registration, sessions[3]))
        db.commit()
        return eligibility

    with patch.object(makeup_service, "evaluate_registration", side_effect=evaluate_then_lose_race):
        resp = _submit(client, headers, seed_registration, sessions[2])

    assert resp.status_code == 409
    assert resp.json()["error"] == "You already have an active makeup request for this registration"
    db.expire_all()
    rows = db.query(MakeupRequest).all()
    assert len(rows) == 1
    assert rows[0].missed_session_id == sessions[3].session_id
