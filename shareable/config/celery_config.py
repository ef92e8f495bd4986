"""
Celery Configuration

The only background job is the periodic reconciliation of item records
and published files, scheduled by Celery beat over a Redis broker.
"""

import os
from typing import Any, Dict, Optional

from celery import Celery
from flask import has_app_context
from kombu import Queue

from ..domain.errors import ConfigurationError

CLEANUP_TASK = "shareable.tasks.cleanup_expired_items"
CLEANUP_QUEUE = "cleanup_queue"


def cleanup_schedule(interval: float) -> Dict[str, Dict[str, Any]]:
    """Beat schedule running the cleanup every ``interval`` seconds."""
    return {
        "cleanup-expired-items": {
            "task": CLEANUP_TASK,
            "schedule": float(interval),
        },
    }


class CeleryConfig:
    """Celery settings, read from the environment at import time."""

    broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    # Only our own JSON payloads travel over the broker
    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]
    timezone = "UTC"
    enable_utc = True

    # A cleanup pass is idempotent, so a redelivered message is harmless
    task_acks_late = True
    worker_prefetch_multiplier = 1

    task_default_queue = "default"
    task_queues = (
        Queue("default", routing_key="default"),
        Queue(CLEANUP_QUEUE, routing_key="cleanup"),
    )
    task_routes = {CLEANUP_TASK: {"queue": CLEANUP_QUEUE}}

    beat_schedule = cleanup_schedule(os.getenv("SHAREABLE_CLEANUP_INTERVAL", 3600))

    # A pass walks every record and stats every file
    task_soft_time_limit = int(os.getenv("CELERY_TASK_SOFT_TIME_LIMIT", 600))
    task_time_limit = int(os.getenv("CELERY_TASK_TIME_LIMIT", 900))

    result_expires = 24 * 3600


def make_celery(app, cleanup_interval: Optional[float] = None) -> Celery:
    """
    Create the Celery app bound to a Flask app.

    Every task runs inside the Flask application context so it can
    resolve services from ``current_app.container``.

    Args:
        app: Flask application instance
        cleanup_interval: Seconds between cleanup runs, overrides
            ``SHAREABLE_CLEANUP_INTERVAL``

    Returns:
        Configured Celery instance
    """
    celery = Celery(
        "shareable",
        broker=CeleryConfig.broker_url,
        backend=CeleryConfig.result_backend,
    )
    celery.config_from_object(CeleryConfig)

    if cleanup_interval is not None:
        celery.conf.beat_schedule = cleanup_schedule(cleanup_interval)

    class AppContextTask(celery.Task):
        def __call__(self, *args, **kwargs):
            # a caller that already runs inside an app keeps its own services
            if has_app_context():
                return self.run(*args, **kwargs)
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = AppContextTask
    return celery


def worker_celery(flask_app) -> Celery:
    """
    Return the Celery app a worker or beat process runs.

    Raises:
        ConfigurationError: If the Flask app was built without Celery
    """
    if getattr(flask_app, "celery", None) is None:
        raise ConfigurationError(
            "Celery is not available: set CELERY_ENABLED=true and make sure "
            "CELERY_BROKER_URL points to a reachable Redis server"
        )

    celery = flask_app.celery
    # imported by the worker once the app exists
    celery.conf.imports = ("shareable.tasks.cleanup_task",)
    return celery
