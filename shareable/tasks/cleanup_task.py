"""
Periodic reconciliation of item records and published files.
"""

import logging

from celery import shared_task
from flask import current_app

from ..domain.items import ItemManager

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="shareable.tasks.cleanup_expired_items")
def cleanup_expired_items(self):
    """
    Delete items that can never become valid again, with their files.

    Items whose file is missing and files no item references are only
    reported as warnings. Scheduled by Celery beat every
    ``SHAREABLE_CLEANUP_INTERVAL`` seconds.

    Returns:
        dict: ``deleted`` item IDs, ``warnings`` and ``errors``
    """
    result = {"deleted": [], "warnings": [], "errors": []}

    try:
        report = current_app.container.resolve(ItemManager).reconcile()
    except Exception as e:
        message = f"Cleanup task failed: {e}"
        logger.exception(message)
        result["errors"].append(message)
        return result

    result["deleted"] = list(report.deleted)
    result["warnings"] = list(report.warnings)

    logger.info(
        f"Cleanup removed {len(result['deleted'])} expired item(s), "
        f"{len(result['warnings'])} warning(s)"
    )

    return result
