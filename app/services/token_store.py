"""Persistence helpers for device tokens."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.device_token import DeviceToken
from app.utils.datetime import to_naive_utc, utc_now_naive

logger = logging.getLogger(__name__)


class TokenStore:
    """Device token queries bound to one SQLAlchemy session.

    Writes commit immediately: each one is an independent point operation.
    """

    def __init__(self, db: Session):
        self.db = db

    def exists_by_token(self, token: str) -> bool:
        return self.db.query(
            self.db.query(DeviceToken).filter(DeviceToken.token == token).exists()
        ).scalar()

    def find_by_token(self, token: str) -> Optional[DeviceToken]:
        return self.db.query(DeviceToken).filter(DeviceToken.token == token).first()

    def find_by_user_id(self, user_id: str) -> List[DeviceToken]:
        return self.db.query(DeviceToken).filter(
            DeviceToken.user_id == user_id
        ).order_by(DeviceToken.id).all()

    def save(self, token: str, user_id: str) -> DeviceToken:
        """Insert a token stamped with the current time.

        The unique constraint on ``token`` is enforced by the database; an
        ``IntegrityError`` propagates after the session is rolled back.
        """
        record = DeviceToken(token=token, user_id=user_id, created_at=utc_now_naive())
        self.db.add(record)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(record)
        return record

    def delete_by_token(self, token: str) -> int:
        """Delete the record for ``token``; returns 0 when there was none."""
        deleted = self.db.query(DeviceToken).filter(
            DeviceToken.token == token
        ).delete(synchronize_session=False)
        self.db.commit()
        return deleted

    def delete_by_time_before(self, cutoff: datetime) -> int:
        """Bulk-delete tokens registered strictly before ``cutoff``."""
        deleted = self.db.query(DeviceToken).filter(
            DeviceToken.created_at < to_naive_utc(cutoff)
        ).delete(synchronize_session=False)
        self.db.commit()
        logger.info(f"Deleted {deleted} tokens registered before {cutoff.isoformat()}")
        return deleted

    purge_older_than = delete_by_time_before
