"""Celery application factory"""
from celery import Celery

from agenda.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create and configure the Celery application"""
    app = Celery(
        "agenda",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=[
            "agenda.tasks.notification_tasks",
            "agenda.tasks.reminder_tasks",
        ],
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        task_routes={
            "agenda.tasks.notification_tasks.*": {"queue": "notifications"},
            "agenda.tasks.reminder_tasks.*": {"queue": "notifications"},
        },
        beat_schedule={
            "dispatch-due-reminders": {
                "task": "agenda.tasks.reminder_tasks.dispatch_due_reminders",
                "schedule": settings.REMINDER_SWEEP_MINUTES * 60,
            },
        },
    )

    return app


celery_app = create_celery_app()
