"""
GoldBod Assay Office - Unit of Work
====================================
Groups a sequence of writes into one transaction: commit when the block
finishes, roll back when anything inside it raises.

    with unit_of_work(db):
        assay = job_card_service.create_assay(db, job_card, data)
"""

import logging
from contextlib import contextmanager

from sqlalchemy.orm import Session

logger = logging.getLogger("goldbod.db")


@contextmanager
def unit_of_work(db: Session):
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        logger.debug("Transaction rolled back")
        raise
