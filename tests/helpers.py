"""Seed data shared by the test modules."""
from datetime import date, datetime, time, timedelta, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from agenda.models import (
    Appointment,
    AppointmentManageToken,
    BusinessHours,
    Customer,
    Establishment,
    Professional,
    ProfessionalService,
    Service,
)

TZ_NAME = "America/Sao_Paulo"
TZ = ZoneInfo(TZ_NAME)

MONDAY = date(2030, 6, 3)
SUNDAY = date(2030, 6, 2)
NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


def local(day: date, hhmm: str) -> datetime:
    """Wall-clock time in the establishment's zone, as aware UTC"""
    hour, minute = (int(part) for part in hhmm.split(":"))
    return datetime.combine(day, time(hour, minute), tzinfo=TZ).astimezone(timezone.utc)


def seed_establishment(db, **overrides) -> SimpleNamespace:
    """
    One establishment open 09:00-18:00 every day, two professionals who both
    perform a 30 and a 45 minute service, and one customer with an e-mail.
    """
    values = dict(
        name="Studio Bela",
        slug="studio-bela",
        timezone=TZ_NAME,
        slot_interval_minutes=15,
        buffer_minutes=0,
        max_future_days=60,
        booking_enabled=True,
        auto_confirm_bookings=False,
        reschedule_min_hours=0,
        reminder_hours_before=24,
        status="active",
    )
    values.update(overrides)
    establishment = Establishment(**values)
    db.add(establishment)
    db.flush()

    for weekday in range(7):
        db.add(BusinessHours(
            establishment_id=establishment.id,
            weekday=weekday,
            open_time=time(9, 0),
            close_time=time(18, 0),
            closed=False,
        ))

    haircut = Service(establishment_id=establishment.id, name="Haircut", duration_minutes=30, active=True)
    coloring = Service(establishment_id=establishment.id, name="Coloring", duration_minutes=45, active=True)
    ana = Professional(establishment_id=establishment.id, name="Ana", active=True)
    bruno = Professional(establishment_id=establishment.id, name="Bruno", active=True)
    db.add_all([haircut, coloring, ana, bruno])
    db.flush()

    for professional in (ana, bruno):
        for service in (haircut, coloring):
            db.add(ProfessionalService(professional_id=professional.id, service_id=service.id))

    customer = Customer(
        establishment_id=establishment.id,
        name="Carla",
        phone="+5511999990000",
        email="carla@example.com",
    )
    db.add(customer)
    db.commit()

    return SimpleNamespace(
        establishment=establishment,
        haircut=haircut,
        coloring=coloring,
        ana=ana,
        bruno=bruno,
        customer=customer,
    )


def add_appointment(db, world, start: datetime, service=None, professional=None, status="booked") -> Appointment:
    service = service or world.haircut
    professional = professional or world.ana
    appointment = Appointment(
        establishment_id=world.establishment.id,
        professional_id=professional.id,
        service_id=service.id,
        customer_id=world.customer.id,
        start_at=start,
        end_at=start + timedelta(minutes=service.duration_minutes),
        status=status,
    )
    db.add(appointment)
    db.commit()
    return appointment


def add_token(db, appointment, expires_at=None, used_at=None) -> str:
    raw = AppointmentManageToken.generate_token()
    db.add(AppointmentManageToken(
        token_hash=AppointmentManageToken.hash_token(raw),
        appointment_id=appointment.id,
        expires_at=expires_at or NOW + timedelta(days=30),
        used_at=used_at,
    ))
    db.commit()
    return raw


def upcoming_day(days: int = 7) -> date:
    """A day inside the booking window relative to the real clock (API routes use it)"""
    return date.today() + timedelta(days=days)


def parse_ts(value: str) -> datetime:
    """API timestamps may use a trailing Z for UTC"""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
