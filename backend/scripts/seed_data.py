"""Seed the database with a demo seminar, its schedule and a few users."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date, timedelta
from dentalce.database import SessionLocal, engine, Base
import dentalce.models  # noqa: F401

from dentalce.config import settings
from dentalce.models.user import User
from dentalce.models.seminar import Seminar, SeminarSession
from dentalce.models.registration import SeminarRegistration
from dentalce.services.seminar_service import generate_qr_code_string


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(User).count() > 0:
            print("Database already seeded. Skipping.")
            return

        # Users
        users = [
            User(email="admin@gpsdentaltraining.com", first_name="Office", last_name="Admin", role="admin"),
            User(email="frontdesk@gpsdentaltraining.com", first_name="Front", last_name="Desk", role="staff"),
            User(email="dr.rivera@example.com", first_name="Alex", last_name="Rivera", role="attendee"),
        ]
        db.add_all(users)
        db.flush()

        # Seminar with a monthly schedule, half of it already behind us
        today = date.today()
        seminar = Seminar(
            title=f"GPS Implant Mastery Seminar {today.year}",
            slug=f"implant-mastery-{today.year}",
            year=today.year,
            description="Ten-session hands-on implant program.",
            total_sessions=settings.SEMINAR_TOTAL_SESSIONS,
            status="active",
        )
        db.add(seminar)
        db.flush()

        first_day = today - timedelta(days=28 * (seminar.total_sessions // 2))
        sessions = [
            SeminarSession(
                seminar_id=seminar.seminar_id,
                session_number=n,
                session_date=first_day + timedelta(days=28 * (n - 1)),
                time_start="08:30",
                time_end="16:30",
                topic=f"Module {n}",
            )
            for n in range(1, seminar.total_sessions + 1)
        ]
        db.add_all(sessions)

        registration = SeminarRegistration(
            user_id=users[2].user_id,
            seminar_id=seminar.seminar_id,
            status="active",
            sessions_completed=0,
            sessions_remaining=seminar.total_sessions,
            makeup_used=False,
            qr_code=generate_qr_code_string(),
        )
        db.add(registration)
        db.commit()

        print("Seed data created successfully!")
        print(f"  Users: {len(users)}")
        print(f"  Seminar: {seminar.slug} (ID={seminar.seminar_id})")
        print(f"  Sessions: {len(sessions)} from {sessions[0].session_date} to {sessions[-1].session_date}")
        print(f"  Registration QR: {registration.qr_code}")
        print()
        print("Test login emails:")
        for u in users:
            print(f"  email={u.email}  role={u.role}")

    except Exception as e:
        db.rollback()
        raise e
    finally:
        db.close()


if __name__ == "__main__":
    seed()
