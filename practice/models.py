from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    JSON,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Appointment lifecycle
PENDING = "PENDING"
CONFIRMED = "CONFIRMED"
CANCELLED = "CANCELLED"
COMPLETED = "COMPLETED"
NO_SHOW = "NO_SHOW"

APPOINTMENT_STATUSES = (PENDING, CONFIRMED, CANCELLED, COMPLETED, NO_SHOW)
# Only these statuses occupy a slot on the calendar
ACTIVE_APPOINTMENT_STATUSES = (PENDING, CONFIRMED)

ROLE_CLIENT = "CLIENT"
ROLE_ADMIN = "ADMIN"

# AppointmentHistory actions
ACTION_CREATED = "CREATED"
ACTION_RESCHEDULED = "RESCHEDULED"
ACTION_CANCELLED = "CANCELLED"
ACTION_STATUS_CHANGED = "STATUS_CHANGED"
ACTION_NOTIFIED = "NOTIFIED"

# Allowed status changes; terminal states have none
STATUS_TRANSITIONS = {
    PENDING: (CONFIRMED, CANCELLED),
    CONFIRMED: (COMPLETED, CANCELLED, NO_SHOW),
    CANCELLED: (),
    COMPLETED: (),
    NO_SHOW: (),
}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)  # Null for users created from the contact form
    phone = Column(String(20), nullable=True)
    role = Column(String(20), default=ROLE_CLIENT, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    email_verified_at = Column(DateTime, nullable=True)
    # Profile
    emergency_contact_name = Column(String(100), nullable=True)
    emergency_contact_phone = Column(String(20), nullable=True)
    # Communication preferences
    email_notifications = Column(Boolean, default=True, nullable=False)
    sms_reminders = Column(Boolean, default=False, nullable=False)
    reminder_time = Column(String(5), default="24", nullable=False)  # Hours before: 24, 2, 1, 0.5
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship(
        "Appointment", back_populates="user", order_by="Appointment.date_time"
    )
    contact_submissions = relationship("ContactSubmission", back_populates="user")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False)  # Minutes
    price = Column(Numeric(10, 2), nullable=False)
    features = Column(JSON, default=list, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="service")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # One active booking per start time. This index, not the availability
        # pre-check, is what finally rejects concurrent double-bookings.
        Index(
            "uq_appointments_active_slot",
            "date_time",
            unique=True,
            sqlite_where=text("status IN ('PENDING', 'CONFIRMED')"),
            postgresql_where=text("status IN ('PENDING', 'CONFIRMED')"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    date_time = Column(DateTime, nullable=False, index=True)  # UTC
    status = Column(String(20), default=PENDING, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(String(200), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="appointments")
    service = relationship("Service", back_populates="appointments")
    history = relationship(
        "AppointmentHistory",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentHistory.created_at.desc()",
    )


class AppointmentHistory(Base):
    __tablename__ = "appointment_history"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    action = Column(String(30), nullable=False)  # CREATED, RESCHEDULED, CANCELLED, STATUS_CHANGED, NOTIFIED
    old_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=True)
    old_date_time = Column(DateTime, nullable=True)
    new_date_time = Column(DateTime, nullable=True)
    reason = Column(String(500), nullable=True)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    actor_name = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    appointment = relationship("Appointment", back_populates="history")


class Availability(Base):
    """Recurring weekly window during which appointments may be booked"""

    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, index=True)
    day_of_week = Column(Integer, nullable=False, index=True)  # 0 = Sunday ... 6 = Saturday
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class BlockedSlot(Base):
    """Ad-hoc closure of a specific time range (day off, training, ...)"""

    __tablename__ = "blocked_slots"

    id = Column(Integer, primary_key=True, index=True)
    date_time = Column(DateTime, nullable=False, index=True)  # UTC
    duration = Column(Integer, nullable=False)  # Minutes
    reason = Column(String(200), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    response = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="contact_submissions")
