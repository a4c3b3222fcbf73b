"""Period eligibility, certificate generation and delivery."""

from datetime import date
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from dentalce.models.certificate import SeminarCertificate
from dentalce.models.registration import SeminarRegistration
from dentalce.models.seminar import Seminar
from dentalce.services import certificate_service
from dentalce.services.email_service import EmailDeliveryError
from tests.conftest import auth_headers, check_in

GENERATE = "/api/admin/seminars/certificates/generate"


def _period_of(session):
    return certificate_service.current_period(session.session_date)


def test_period_window_and_display():
    assert certificate_service.period_window("first_half", 2025) == (date(2025, 1, 1), date(2025, 6, 30))
    assert certificate_service.period_window("second_half", 2025) == (date(2025, 7, 1), date(2025, 12, 31))
    assert certificate_service.period_display("first_half", 2025) == "January - June 2025"
    assert certificate_service.period_display("second_half", 2025) == "July - December 2025"
    assert certificate_service.current_period(date(2025, 6, 30)) == ("first_half", 2025)
    assert certificate_service.current_period(date(2025, 7, 1)) == ("second_half", 2025)


def test_invalid_period_rejected(client, seed_users, seed_registration):
    admin = auth_headers(client, "admin@gps.test")
    resp = client.post(
        GENERATE,
        json={"registration_id": seed_registration.registration_id, "period": "q3"},
        headers=admin,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == 'Period must be "first_half" or "second_half"'


def test_generate_twice_keeps_one_row_and_sent_at(client, db, seed_users, seed_registration, sessions):
    admin = auth_headers(client, "admin@gps.test")
    check_in(client, admin, seed_registration.registration_id, sessions[0].session_id)
    period, year = _period_of(sessions[0])
    payload = {"registration_id": seed_registration.registration_id, "period": period, "year": year}

    first = client.post(GENERATE, json=payload, headers=admin)
    assert first.status_code == 200
    first_data = first.json()["data"]
    assert first_data["certificate_code"].startswith(f"CERT-{year}-")
    assert first_data["certificate_url"].endswith(f"/certificate/{first_data['certificate_code']}")
    assert first_data["credits"] == 2.0

    sent = client.post("/api/admin/seminars/certificates/send", json=payload, headers=admin)
    assert sent.status_code == 200
    assert sent.json()["data"]["sent_to"] == "dr.lee@gps.test"
    assert sent.json()["data"]["skipped_delivery"] is True
    sent_at = sent.json()["data"]["certificate"]["sent_at"]
    assert sent_at is not None

    second = client.post(GENERATE, json=payload, headers=admin)
    assert second.status_code == 200
    second_data = second.json()["data"]
    assert second_data["certificate_id"] == first_data["certificate_id"]
    assert second_data["certificate_url"].endswith(f"/certificate/{second_data['certificate_code']}")
    assert second_data["sent_at"] == sent_at
    assert db.query(SeminarCertificate).count() == 1


def test_generate_without_period_credits_is_rejected(client, seed_users, seed_registration):
    admin = auth_headers(client, "admin@gps.test")
    resp = client.post(
        GENERATE,
        json={"registration_id": seed_registration.registration_id, "period": "first_half", "year": 2001},
        headers=admin,
    )
    assert resp.status_code == 400


def test_send_requires_generated_certificate(client, seed_users, seed_registration):
    admin = auth_headers(client, "admin@gps.test")
    resp = client.post(
        "/api/admin/seminars/certificates/send",
        json={"registration_id": seed_registration.registration_id, "period": "first_half", "year": 2025},
        headers=admin,
    )
    assert resp.status_code == 404


def test_eligibility_listing(client, db, seed_users, seed_seminar, seed_registration, sessions):
    other = SeminarRegistration(
        user_id=seed_users["other"].user_id,
        seminar_id=seed_seminar.seminar_id,
        status="active",
        sessions_completed=0,
        sessions_remaining=10,
        qr_code="SEM-TESTQR-0002",
    )
    db.add(other)
    db.commit()

    admin = auth_headers(client, "admin@gps.test")
    check_in(client, admin, seed_registration.registration_id, sessions[0].session_id)
    period, year = _period_of(sessions[0])

    resp = client.get(
        f"/api/admin/seminars/certificates/eligible?seminar_id={seed_seminar.seminar_id}&period={period}&year={year}",
        headers=admin,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["stats"] == {"total": 2, "eligible": 1, "generated": 0, "sent": 0}
    rows = {r["registration_id"]: r for r in body["registrations"]}
    mine = rows[seed_registration.registration_id]
    assert mine["eligible"] is True
    assert mine["state"] == "pending"
    assert mine["sessions_in_period"] == 1
    assert mine["credits_in_period"] == 2.0
    assert rows[other.registration_id]["state"] == "ineligible"


def test_bulk_generate_reports_partial_failure(client, db, seed_users, seed_seminar, seed_registration, sessions):
    admin = auth_headers(client, "admin@gps.test")
    check_in(client, admin, seed_registration.registration_id, sessions[0].session_id)
    period, year = _period_of(sessions[0])

    resp = client.post(
        "/api/admin/seminars/certificates/bulk-generate",
        json={
            "registration_ids": [9998, seed_registration.registration_id, 9999],
            "period": period,
            "year": year,
        },
        headers=admin,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["succeeded"] == 1
    assert body["failed"] == 2
    assert [e["registration_id"] for e in body["errors"]] == [9998, 9999]
    assert db.query(SeminarCertificate).count() == 1


def test_bulk_send_continues_past_delivery_errors(client, db, seed_users, seed_registration, sessions):
    admin = auth_headers(client, "admin@gps.test")
    check_in(client, admin, seed_registration.registration_id, sessions[0].session_id)
    period, year = _period_of(sessions[0])
    client.post(
        GENERATE,
        json={"registration_id": seed_registration.registration_id, "period": period, "year": year},
        headers=admin,
    )

    with patch(
        "dentalce.services.email_service.send_certificate_email",
        side_effect=EmailDeliveryError("provider down"),
    ):
        resp = client.post(
            "/api/admin/seminars/certificates/bulk-send",
            json={"registration_ids": [seed_registration.registration_id, 4242], "period": period, "year": year},
            headers=admin,
        )
    body = resp.json()
    assert body["succeeded"] == 0
    assert body["failed"] == 2
    assert body["errors"][0]["error"] == "provider down"
    db.expire_all()
    assert db.query(SeminarCertificate).one().sent_at is None


def test_cron_issues_for_period(client, db, seed_users, seed_registration, sessions, monkeypatch):
    admin = auth_headers(client, "admin@gps.test")
    check_in(client, admin, seed_registration.registration_id, sessions[0].session_id)
    period, year = _period_of(sessions[0])

    monkeypatch.setattr("dentalce.config.settings.CRON_SECRET", "s3cret")
    denied = client.post(f"/api/cron/seminar-certificates?period={period}&year={year}")
    assert denied.status_code == 401

    dry = client.post(f"/api/cron/seminar-certificates?key=s3cret&period={period}&year={year}&dry_run=true")
    assert dry.status_code == 200
    assert dry.json()["details"][0]["eligible_count"] == 1
    assert dry.json()["total_generated"] == 0
    assert db.query(SeminarCertificate).count() == 0

    run = client.post(f"/api/cron/seminar-certificates?key=s3cret&period={period}&year={year}")
    assert run.status_code == 200
    assert run.json()["total_generated"] == 1
    assert run.json()["seminars_processed"] == 1


def test_year_out_of_range_rejected_by_routes(client, seed_users, seed_seminar, seed_registration):
    admin = auth_headers(client, "admin@gps.test")
    resp = client.post(
        GENERATE,
        json={"registration_id": seed_registration.registration_id, "period": "first_half", "year": 10000},
        headers=admin,
    )
    assert resp.status_code == 422
    assert resp.json()["success"] is False

    resp = client.post(
        "/api/admin/seminars/certificates/bulk-generate",
        json={"registration_ids": [seed_registration.registration_id], "period": "first_half", "year": 0},
        headers=admin,
    )
    assert resp.status_code == 422

    resp = client.get(
        f"/api/admin/seminars/certificates/eligible?seminar_id={seed_seminar.seminar_id}&period=first_half&year=10000",
        headers=admin,
    )
    assert resp.status_code == 422
    assert client.post("/api/cron/seminar-certificates?period=first_half&year=10000").status_code == 422


def test_year_out_of_range_rejected_by_service(db, seed_registration):
    with pytest.raises(HTTPException) as exc:
        certificate_service.period_window("first_half", 10000)
    assert exc.value.status_code == 400
    assert exc.value.detail == "Year must be between 2000 and 2100"

    # year 0 is not replaced with the current year
    with pytest.raises(HTTPException) as exc:
        certificate_service.generate_certificate(db, seed_registration.registration_id, "first_half", 0)
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        certificate_service.bulk_generate(db, [seed_registration.registration_id], "first_half", 10000)
    assert exc.value.status_code == 400


def _extra_seminar(db, slug):
    seminar = Seminar(title=f"Seminar {slug}", slug=slug, year=date.today().year, total_sessions=10, status="active")
    db.add(seminar)
    db.commit()
    db.refresh(seminar)
    return seminar


def test_cron_counts_only_seminars_with_eligible_registrations(client, db, seed_users, seed_registration, sessions):
    admin = auth_headers(client, "admin@gps.test")
    check_in(client, admin, seed_registration.registration_id, sessions[0].session_id)
    empty = _extra_seminar(db, "empty-seminar")
    period, year = _period_of(sessions[0])

    resp = client.post(f"/api/cron/seminar-certificates?period={period}&year={year}&dry_run=true")
    assert resp.status_code == 200
    body = resp.json()
    assert body["seminars_processed"] == 1
    assert len(body["details"]) == 2
    empty_detail = next(d for d in body["details"] if d["seminar_id"] == empty.seminar_id)
    assert empty_detail["eligible_count"] == 0
    assert empty_detail["message"] == "No eligible registrations"


def test_cron_continues_after_a_seminar_fails(client, db, seed_users, seed_seminar, seed_registration, sessions):
    admin = auth_headers(client, "admin@gps.test")
    check_in(client, admin, seed_registration.registration_id, sessions[0].session_id)
    broken = _extra_seminar(db, "broken-seminar")
    period, year = _period_of(sessions[0])
    real_list_eligibility = certificate_service.list_eligibility

    def list_eligibility(db, seminar_id, *args, **kwargs):
        if seminar_id == broken.seminar_id:
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))
        return real_list_eligibility(db, seminar_id, *args, **kwargs)

    with patch.object(certificate_service, "list_eligibility", side_effect=list_eligibility):
        resp = client.post(f"/api/cron/seminar-certificates?period={period}&year={year}")

    assert resp.status_code == 200
    body = resp.json()
    assert body["total_generated"] == 1
    failed = next(d for d in body["details"] if d["seminar_id"] == broken.seminar_id)
    assert "database is locked" in failed["error"]
    ok = next(d for d in body["details"] if d["seminar_id"] == seed_seminar.seminar_id)
    assert ok["generated_count"] == 1
    assert db.query(SeminarCertificate).count() == 1
