from contextlib import contextmanager
import logging
from models import db

logger = logging.getLogger(__name__)


@contextmanager
def transactional(message="DB transaction failed"):
    """Context manager to wrap a database transaction.

    Domain errors are expected outcomes and are logged without a traceback.
    """
    from app.services.errors import ServiceError

    try:
        yield
        db.session.commit()
    except ServiceError as e:
        logger.info(f"{message}: %s", e)
        db.session.rollback()
        raise
    except Exception as e:
        logger.error(f"{message}: %s", e, exc_info=True)
        db.session.rollback()
        raise
