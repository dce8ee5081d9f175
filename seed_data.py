#!/usr/bin/env python3
"""
Seed the database with the default services, an admin account and weekly availability.

Usage: python seed_data.py [--reset]

--reset deletes existing appointments, availability, blocked slots, services and users first.
Without it, rows that already exist are left alone.
"""
import logging
import os
import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from practice.database import Base, SessionLocal, engine
from practice.models import (
    ROLE_ADMIN,
    Appointment,
    AppointmentHistory,
    Availability,
    BlockedSlot,
    ContactSubmission,
    Service,
    User,
)
from practice.security import hash_password

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

SERVICES = [
    {
        "title": "Individual Therapy",
        "description": "One-on-one counseling for personal growth and healing",
        "duration": 50,
        "price": Decimal("150.00"),
        "features": [
            "Personalized treatment planning",
            "Evidence-based therapeutic approaches",
            "Weekly or bi-weekly sessions",
            "Confidential and judgment-free environment",
        ],
    },
    {
        "title": "Couples Counseling",
        "description": "Strengthen your relationship through better communication",
        "duration": 60,
        "price": Decimal("180.00"),
        "features": [
            "Communication skills training",
            "Conflict resolution strategies",
            "Rebuilding trust and intimacy",
            "Pre-marital counseling available",
        ],
    },
    {
        "title": "Family Therapy",
        "description": "Work through family challenges together",
        "duration": 60,
        "price": Decimal("200.00"),
        "features": [
            "Family communication improvement",
            "Parenting support and guidance",
            "Blended family adjustment",
            "Generational pattern healing",
        ],
    },
    {
        "title": "Teen Counseling",
        "description": "Specialized support for adolescents",
        "duration": 45,
        "price": Decimal("130.00"),
        "features": [
            "Age-appropriate therapeutic techniques",
            "School and peer relationship issues",
            "Identity and self-esteem building",
            "Parent consultation included",
        ],
    },
    {
        "title": "Trauma & PTSD Treatment",
        "description": (
            "Specialized trauma-informed care using evidence-based approaches like EMDR and CPT "
            "to help you process and heal from traumatic experiences."
        ),
        "duration": 50,
        "price": Decimal("160.00"),
        "features": [
            "EMDR therapy available",
            "Cognitive Processing Therapy",
            "Safe trauma processing",
            "Coping skills development",
        ],
    },
    {
        "title": "Anxiety & Depression Treatment",
        "description": (
            "Targeted treatment for anxiety disorders and depression using CBT, mindfulness, "
            "and other proven therapeutic approaches to help you regain control and find relief."
        ),
        "duration": 50,
        "price": Decimal("150.00"),
        "features": [
            "Cognitive Behavioral Therapy (CBT)",
            "Mindfulness-based techniques",
            "Stress management skills",
            "Medication management support",
        ],
    },
]

# Monday-Friday with a lunch break, Saturday mornings
AVAILABILITY = [
    *[(day, "09:00", "12:00") for day in range(1, 6)],
    *[(day, "13:00", "17:00") for day in range(1, 6)],
    (6, "10:00", "14:00"),
]


def reset(db):
    logger.info("🗑️ Clearing existing data...")
    for model in (AppointmentHistory, Appointment, ContactSubmission, BlockedSlot, Availability, Service, User):
        db.query(model).delete()
    db.commit()


def seed_services(db) -> int:
    created = 0
    for data in SERVICES:
        if db.query(Service).filter(Service.title == data["title"]).first():
            continue
        db.add(Service(is_active=True, **data))
        created += 1
    db.commit()
    return created


def seed_admin(db) -> None:
    email = os.getenv("ADMIN_EMAIL", "admin@healingpath.example").strip().lower()
    password = os.getenv("ADMIN_PASSWORD")
    if db.query(User).filter(User.email == email).first():
        logger.info(f"Admin {email} already exists")
        return
    if not password:
        logger.warning("⚠️ ADMIN_PASSWORD not set - skipping admin account")
        return

    db.add(
        User(
            name=os.getenv("ADMIN_NAME", "Practice Admin"),
            email=email,
            password_hash=hash_password(password),
            role=ROLE_ADMIN,
            email_verified=True,
        )
    )
    db.commit()
    logger.info(f"✅ Created admin {email}")


def seed_availability(db) -> int:
    created = 0
    for day, start, end in AVAILABILITY:
        exists = (
            db.query(Availability)
            .filter(
                Availability.day_of_week == day,
                Availability.start_time == start,
                Availability.end_time == end,
            )
            .first()
        )
        if exists:
            continue
        db.add(Availability(day_of_week=day, start_time=start, end_time=end, is_active=True))
        created += 1
    db.commit()
    return created


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        logger.info("🌱 Starting seed...")
        if "--reset" in sys.argv[1:]:
            reset(db)
        logger.info(f"Created {seed_services(db)} services")
        seed_admin(db)
        logger.info(f"Created {seed_availability(db)} availability windows")
        logger.info("✅ Seed completed successfully!")
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Seed failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
