# -*- coding: utf-8 -*-
"""
Bootstraps the first administrator account from FIRST_ADMIN_EMAIL / FIRST_ADMIN_PASSWORD.
"""

import logging

from campus_events import config
from campus_events.auth import get_password_hash
from campus_events.database import SessionLocal
# registers every table on Base.metadata
from campus_events import models  # noqa: F401
from campus_events.models.user import User

logger = logging.getLogger(__name__)


def create_first_user():
    db = SessionLocal()

    try:
        email = config.FIRST_ADMIN_EMAIL.lower()
        user = db.query(User).filter(User.email == email).first()

        if not user:
            logger.info("Creating first administrator account %s", email)
            db_user = User(
                name="System Administrator",
                email=email,
                hashed_password=get_password_hash(config.FIRST_ADMIN_PASSWORD),
                role="admin",
                is_verified=True,
            )
            db.add(db_user)
            db.commit()
            logger.info("Administrator %s created", email)
        else:
            logger.info("Administrator %s already exists", email)

    except Exception:
        logger.exception("Failed to create the first administrator")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    create_first_user()
