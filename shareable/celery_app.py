"""
Worker entry point.

Builds the Flask app once so the worker and beat share its configuration
and services:

    celery -A shareable.celery_app worker -B
"""

from .app_factory import create_app
from .config.celery_config import worker_celery

flask_app = create_app()
celery_app = worker_celery(flask_app)
