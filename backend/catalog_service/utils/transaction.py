from contextlib import contextmanager

from flask import current_app

from catalog_service.extensions import db


@contextmanager
def transactional():
    """
    Commit the session when the block completes, roll it back on any error.

    Catalog rows, audit rows and provider references written inside the block
    land together or not at all. The original exception is re-raised.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.debug("Transaction rolled back: %s", exc)
        raise
