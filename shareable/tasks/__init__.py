"""Celery tasks."""

from .cleanup_task import cleanup_expired_items

__all__ = ["cleanup_expired_items"]
