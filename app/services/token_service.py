"""Registration, removal and expiry of device tokens."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from app.core.settings import settings
from app.exceptions import ConflictException, NotFoundException, ValidationException
from app.models.device_token import DeviceToken
from app.services import audit
from app.services.dispatcher import NotificationDispatcher
from app.services.token_store import TokenStore
from app.utils.datetime import retention_cutoff

logger = logging.getLogger(__name__)


class TokenService:
    """Token lifecycle operations behind the registration endpoints."""

    def __init__(self, store: TokenStore, dispatcher: NotificationDispatcher):
        self.store = store
        self.dispatcher = dispatcher

    def register(self, token: str, user_id: str) -> DeviceToken:
        """Store a token after FCM validation and a uniqueness check.

        Raises:
            ValidationException: FCM reports the token as unregistered or malformed.
            ConflictException: the token is already stored (for any user).
        """
        logger.info(f"Save token {audit.mask_token(token)} for userId {user_id}")
        if self.dispatcher.is_token_invalid(token):
            logger.info(f"Token {audit.mask_token(token)} invalid, throwing 400")
            raise ValidationException("Token is not valid")

        if self.store.exists_by_token(token):
            logger.info(f"Token {audit.mask_token(token)} already exists, throwing 409")
            raise ConflictException("Token already registered")

        try:
            record = self.store.save(token, user_id)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same token
            logger.info(f"Token {audit.mask_token(token)} registered concurrently, throwing 409")
            raise ConflictException("Token already registered")

        audit.log_token_register(user_id, token)
        logger.info(f"Token {audit.mask_token(token)} saved to DB")
        return record

    def deregister(self, token: str, user_id: str) -> None:
        """Remove a stored token.

        The token is removed whatever user it is stored under; a mismatch with
        ``user_id`` is only logged.
        """
        existing = self.store.find_by_token(token)
        if existing is None:
            logger.info(f"Token {audit.mask_token(token)} is not registered. Throwing 404.")
            raise NotFoundException("Token not registered")

        if existing.user_id != user_id:
            logger.warning(
                f"Token {audit.mask_token(token)} is stored for userId {existing.user_id}, "
                f"deregistration requested by userId {user_id}"
            )
        self.store.delete_by_token(token)
        audit.log_token_deregister(user_id, token, existing.user_id)
        logger.info(f"Token {audit.mask_token(token)} deleted from DB")

    def purge_expired(self, now: Optional[datetime] = None, retention_days: Optional[int] = None) -> int:
        """Delete tokens older than the retention window. Safe to repeat."""
        days = retention_days if retention_days is not None else settings.token_retention_days
        cutoff = retention_cutoff(days, now)
        deleted = self.store.purge_older_than(cutoff)
        audit.log_token_purge(cutoff.isoformat(), deleted)
        logger.info(f"Deleted {deleted} tokens older than {days} days")
        return deleted
