"""Device token model for push notifications."""

from sqlalchemy import Column, Integer, String, DateTime

from app.db import Base
from app.utils.datetime import utc_now_naive


class DeviceToken(Base):
    """Stores FCM registration tokens for push notifications.

    A user can have any number of devices, but a token string belongs to at
    most one record. ``created_at`` only drives the retention sweep.
    """
    __tablename__ = "device_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String, nullable=False, unique=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utc_now_naive, index=True)

    def __repr__(self):
        return f"<DeviceToken user={self.user_id} token={self.token[:12]}...>"
