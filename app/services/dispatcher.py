"""Send-and-reconcile logic for outbound notifications."""

import logging
from typing import Optional

from app.exceptions import (
    AllTokensInvalidError,
    DeliveryUnavailableError,
    NoTokensFoundError,
    PushProviderError,
)
from app.services import audit
from app.services.push_provider import DeliveryError, DeliveryOutcome, PushProviderClient
from app.services.token_store import TokenStore

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "The registration token is not a valid FCM registration token"


def is_permanently_invalid(error: Optional[DeliveryError]) -> bool:
    """True when FCM says the token will never be deliverable again."""
    if error is None:
        return False
    if error.code == "UNREGISTERED":
        return True
    return error.code == "INVALID_ARGUMENT" and error.message == INVALID_TOKEN_MESSAGE


class NotificationDispatcher:
    """Delivers one notification to every device of a user.

    Stateless between calls; one instance per request is fine.
    """

    def __init__(self, store: TokenStore, provider: PushProviderClient):
        self.store = store
        self.provider = provider

    def send(self, user_id: str, title: str, body: str) -> DeliveryOutcome:
        """Multicast to all of the user's tokens and prune invalid ones.

        Returns the outcome when at least one device accepted the message.
        Raises:
            NoTokensFoundError: the user has no tokens (no provider call is made).
            AllTokensInvalidError: nothing delivered, every failure was a dead token.
            DeliveryUnavailableError: nothing delivered for any other reason,
                including the provider being unreachable.
        """
        tokens = [t.token for t in self.store.find_by_user_id(user_id)]
        logger.info(f"Found {len(tokens)} tokens for userId {user_id}")
        if not tokens:
            logger.info(f"No tokens found for userId {user_id}")
            raise NoTokensFoundError(user_id)

        try:
            outcome = self.provider.send_multicast(tokens, title, body)
        except PushProviderError as e:
            logger.error(f"Error sending multicast message to userId {user_id}: {e}")
            audit.log_message_send(user_id, len(tokens), 0, 0, "provider_unavailable")
            raise DeliveryUnavailableError(user_id) from e

        invalid_count = self._prune_invalid_tokens(user_id, outcome)

        if outcome.success_count > 0:
            audit.log_message_send(
                user_id, outcome.attempted, outcome.success_count, invalid_count, "delivered"
            )
            return outcome

        if outcome.failure_count > 0 and invalid_count == outcome.failure_count:
            logger.info(
                f"No messages sent for userId {user_id}. "
                "All stored tokens are not valid or unregistered"
            )
            audit.log_message_send(user_id, outcome.attempted, 0, invalid_count, "all_invalid")
            raise AllTokensInvalidError(user_id)

        audit.log_message_send(user_id, outcome.attempted, 0, invalid_count, "unavailable")
        raise DeliveryUnavailableError(user_id)

    def _prune_invalid_tokens(self, user_id: str, outcome: DeliveryOutcome) -> int:
        """Delete tokens FCM reported as dead; returns how many were deleted."""
        invalid_count = 0
        for result in outcome.failures:
            if is_permanently_invalid(result.error):
                invalid_count += 1
                self.store.delete_by_token(result.token)
                audit.log_token_invalidated(user_id, result.token, result.error.code)
                logger.info(f"Token {audit.mask_token(result.token)} unregistered or not valid. Deleted from DB.")
            else:
                error = result.error or DeliveryError.from_exception(None)
                logger.error(
                    f"Unexpected send message error. Token: {audit.mask_token(result.token)} "
                    f"Errorcode = {error.code} Message = {error.message}"
                )
        return invalid_count

    def is_token_invalid(self, token: str) -> bool:
        """Dry-run a send to ``token``.

        True only when FCM proves the token dead; success and every other
        error mean "not proven invalid".
        """
        result = self.provider.send_single(token, dry_run=True)
        if result.success:
            logger.info(f"Token {audit.mask_token(token)} validated successfully.")
            return False
        logger.info(f"Validating token {audit.mask_token(token)} failed with errorcode {result.error.code}")
        return is_permanently_invalid(result.error)
