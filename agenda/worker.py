"""
Celery worker entry point
Delivers appointment notifications and runs the reminder sweep
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from agenda.config.celery_config import celery_app
from agenda.utils.my_logging import setup_logging

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    """Handle worker startup"""
    logger.info("Celery worker ready")
    logger.info(f"Registered tasks: {sorted(k for k in celery_app.tasks.keys() if k.startswith('agenda.'))}")


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    """Handle worker shutdown"""
    logger.info("Celery worker shutting down...")


if __name__ == "__main__":
    # Run worker with the embedded beat scheduler for reminders
    celery_app.start([
        'worker',
        '--beat',
        '--loglevel=info',
        '--concurrency=4',
        '--queues=notifications,celery',
        '--max-tasks-per-child=1000'
    ])
