from agenda.services.email.email_service import AppointmentEmailContext, EmailService
from agenda.services.notification.notification_service import NotificationService, NotificationType
from agenda.tasks import notification_tasks, reminder_tasks
from agenda.tasks.notification_tasks import build_email_context, send_appointment_notification
from tests.helpers import MONDAY, add_appointment, local


def _record_emails(monkeypatch):
    sent = []

    def fake_send(to_email, notification_type, context):
        sent.append((to_email, notification_type, context))
        return True

    monkeypatch.setattr(EmailService, "send_appointment_email", staticmethod(fake_send))
    return sent


def test_dispatch_queues_a_json_payload(sent_notifications, world):
    queued = NotificationService.dispatch(NotificationType.CONFIRMATION, world.customer.id, manage_token="abc")

    assert queued
    assert sent_notifications == [{
        "notification_type": "confirmation",
        "appointment_id": str(world.customer.id),
        "manage_token": "abc",
    }]


def test_dispatch_failure_is_swallowed(monkeypatch, world):
    def broken(*args, **kwargs):
        raise ConnectionError("broker down")

    monkeypatch.setattr(notification_tasks.send_appointment_notification, "apply_async", broken)

    assert NotificationService.dispatch(NotificationType.REMINDER, world.customer.id) is False


def test_email_context_uses_local_time(db, world):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))

    context = build_email_context(appointment, manage_token="tok")

    assert context.when == "03/06/2030 10:00"
    assert context.service_name == "Haircut"
    assert context.professional_name == "Ana"
    assert context.establishment_slug == "studio-bela"


def test_task_sends_the_email(monkeypatch, db, world, session_factory):
    monkeypatch.setattr(notification_tasks, "SessionLocal", session_factory)
    emails = _record_emails(monkeypatch)
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))

    result = send_appointment_notification(
        notification_type="reschedule",
        appointment_id=str(appointment.id),
        manage_token="fresh"
    )

    assert result["status"] == "success"
    to_email, notification_type, context = emails[0]
    assert to_email == "carla@example.com"
    assert notification_type == "reschedule"
    assert context.manage_token == "fresh"


def test_task_skips_customers_without_email(monkeypatch, db, world, session_factory):
    monkeypatch.setattr(notification_tasks, "SessionLocal", session_factory)
    emails = _record_emails(monkeypatch)
    world.customer.email = None
    db.commit()
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))

    result = send_appointment_notification(notification_type="confirmation", appointment_id=str(appointment.id))

    assert result["status"] == "skipped"
    assert emails == []


def test_rendered_email_has_manage_link():
    subject, html, text = EmailService.render_appointment_email(
        "confirmation",
        AppointmentEmailContext(
            customer_name="Carla",
            establishment_name="Studio Bela",
            establishment_slug="studio-bela",
            service_name="Haircut",
            professional_name="Ana",
            when="03/06/2030 10:00",
            manage_token="tok123",
        )
    )

    assert subject == "Your appointment at Studio Bela is booked"
    assert "http://localhost:3000/studio-bela/manage/tok123" in html
    assert "http://localhost:3000/studio-bela/manage/tok123" in text


def test_rendered_email_escapes_customer_input():
    _, html, text = EmailService.render_appointment_email(
        "reminder",
        AppointmentEmailContext(
            customer_name="<script>alert(1)</script>",
            establishment_name="Tom & Jerry Barbers",
            establishment_slug="tom-jerry",
            service_name="Haircut",
            professional_name="Ana",
            when="03/06/2030 10:00",
        )
    )

    assert "<script>" not in html
    assert "Hi &lt;script&gt;alert(1)&lt;/script&gt;!" in html
    assert "Tom &amp; Jerry Barbers" in html
    assert "Tom & Jerry Barbers" in text


def test_reminder_sweep_dispatches_claimed(monkeypatch, db, world, session_factory, sent_notifications):
    monkeypatch.setattr(reminder_tasks, "SessionLocal", session_factory)
    monkeypatch.setattr(
        reminder_tasks.ReminderService,
        "claim_due_reminders",
        staticmethod(lambda session, now=None: [world.customer.id])
    )

    result = reminder_tasks.dispatch_due_reminders()

    assert result == {"status": "success", "queued": 1}
    assert sent_notifications[0]["notification_type"] == "reminder"
