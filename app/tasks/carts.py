import logging
from celery import shared_task
from flask import has_app_context
from app.utils import transactional

logger = logging.getLogger(__name__)


def _run_cleanup() -> int:
    from app.services.cart import cleanup_expired_carts

    with transactional("Failed to clean up expired carts"):
        removed = cleanup_expired_carts()
    return removed


@shared_task(bind=True, max_retries=2, default_retry_delay=60)
def cleanup_expired_carts_task(self) -> int:
    """Hard-delete expired carts on the beat schedule."""
    try:
        if has_app_context():
            return _run_cleanup()
        from app import create_app
        app = create_app()
        with app.app_context():
            return _run_cleanup()
    except Exception as exc:
        logger.error("Expired cart cleanup failed: %s", exc)
        raise self.retry(exc=exc)
