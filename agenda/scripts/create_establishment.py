#!/usr/bin/env python3
"""
Script to create a demo establishment with hours, services and professionals
Usage: python -m agenda.scripts.create_establishment
"""
import sys
from datetime import time

from sqlalchemy.orm import Session

from agenda.config.database import SessionLocal
from agenda.models import (
    BusinessHours,
    Establishment,
    Professional,
    ProfessionalHours,
    ProfessionalService,
    RecurringTimeBlock,
    Service,
    StaffRole,
    User,
)

# Weekday 0=Sunday ... 6=Saturday; None means closed
DEMO_HOURS = {
    0: None,
    1: ("09:00", "19:00"),
    2: ("09:00", "19:00"),
    3: ("09:00", "19:00"),
    4: ("09:00", "19:00"),
    5: ("09:00", "19:00"),
    6: ("10:00", "16:00"),
}

DEMO_SERVICES = [
    ("Haircut", 30, 6000),
    ("Beard trim", 20, 3500),
    ("Coloring", 90, 18000),
]

DEMO_PROFESSIONALS = ["Ana", "Bruno"]


def _parse(value: str) -> time:
    hour, minute = (int(part) for part in value.split(":"))
    return time(hour, minute)


def create_establishment_with_hours(db: Session, slug: str = "studio-demo") -> Establishment:
    """Create the demo establishment; every professional performs every service"""
    establishment = Establishment(
        name="Studio Demo",
        slug=slug,
        timezone="America/Sao_Paulo",
        slot_interval_minutes=15,
        buffer_minutes=10,
        max_future_days=45,
        booking_enabled=True,
        auto_confirm_bookings=False,
        reschedule_min_hours=12,
        reminder_hours_before=24,
        cancellation_policy_text="Appointments can be rescheduled or canceled up to 12 hours in advance.",
    )
    db.add(establishment)
    db.flush()

    for weekday, window in DEMO_HOURS.items():
        db.add(BusinessHours(
            establishment_id=establishment.id,
            weekday=weekday,
            open_time=_parse(window[0]) if window else None,
            close_time=_parse(window[1]) if window else None,
            closed=window is None,
        ))

    services = []
    for name, duration, price_cents in DEMO_SERVICES:
        service = Service(
            establishment_id=establishment.id,
            name=name,
            duration_minutes=duration,
            price_cents=price_cents,
            active=True,
        )
        db.add(service)
        services.append(service)

    professionals = []
    for name in DEMO_PROFESSIONALS:
        professional = Professional(establishment_id=establishment.id, name=name, active=True)
        db.add(professional)
        professionals.append(professional)
    db.flush()

    for professional in professionals:
        for service in services:
            db.add(ProfessionalService(professional_id=professional.id, service_id=service.id))

    # Bruno starts late on Saturdays; everyone lunches 12:00-13:00 on weekdays
    db.add(ProfessionalHours(
        professional_id=professionals[1].id,
        weekday=6,
        start_time=time(12, 0),
        end_time=None,
        closed=False,
    ))
    for weekday in range(1, 6):
        db.add(RecurringTimeBlock(
            establishment_id=establishment.id,
            professional_id=None,
            weekday=weekday,
            start_time=time(12, 0),
            end_time=time(13, 0),
            reason="Lunch",
            active=True,
        ))

    db.add(User(
        email=f"owner@{slug}.example",
        full_name="Demo Owner",
        establishment_id=establishment.id,
        role=StaffRole.OWNER,
        is_active=True,
    ))

    db.commit()
    return establishment


def main():
    db: Session = SessionLocal()

    try:
        establishment = create_establishment_with_hours(db)

        print("\n" + "=" * 60)
        print("ESTABLISHMENT CREATED SUCCESSFULLY!")
        print("=" * 60)
        print(f"\nEstablishment ID: {establishment.id}")
        print(f"Slug: {establishment.slug}")
        print(f"Timezone: {establishment.timezone}")

        print("\nServices:")
        for service in db.query(Service).filter(Service.establishment_id == establishment.id):
            print(f"  - {service.name} ({service.formatted_duration}) {service.id}")

        print("\nProfessionals:")
        for professional in db.query(Professional).filter(Professional.establishment_id == establishment.id):
            print(f"  - {professional.name} {professional.id}")

        print("\nBusiness Hours:")
        days = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
        for weekday, window in DEMO_HOURS.items():
            print(f"  {days[weekday]}: {'CLOSED' if window is None else f'{window[0]} - {window[1]}'}")
        print()

        return str(establishment.id)

    except Exception as e:
        db.rollback()
        print(f"\n❌ Error creating establishment: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
