"""Firebase Cloud Messaging client."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from firebase_admin import messaging
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

from app.exceptions import PushProviderError

logger = logging.getLogger(__name__)

# FCM rejects multicast messages addressing more tokens than this
MULTICAST_BATCH_LIMIT = 500

# Failures of a whole request: FCM errors, and google-auth errors raised when
# the service account credentials cannot be refreshed.
_TRANSPORT_ERRORS = (FirebaseError, GoogleAuthError)

# Error codes FCM reports through dedicated exception classes rather than
# a canonical code on FirebaseError.
_MESSAGING_ERROR_CODES = (
    (messaging.UnregisteredError, "UNREGISTERED"),
    (messaging.SenderIdMismatchError, "SENDER_ID_MISMATCH"),
    (messaging.QuotaExceededError, "QUOTA_EXCEEDED"),
    (messaging.ThirdPartyAuthError, "THIRD_PARTY_AUTH_ERROR"),
)


def _is_fcm_available() -> bool:
    """Check if a Firebase app has been initialized."""
    try:
        import firebase_admin
        firebase_admin.get_app()
        return True
    except ValueError:
        return False


@dataclass(frozen=True)
class DeliveryError:
    """Provider classification of a failed send."""
    code: str
    message: str

    @classmethod
    def from_exception(cls, exc: Optional[Exception]) -> "DeliveryError":
        if exc is None:
            return cls(code="UNKNOWN", message="")
        for error_cls, code in _MESSAGING_ERROR_CODES:
            if isinstance(exc, error_cls):
                return cls(code=code, message=str(exc))
        if isinstance(exc, FirebaseError):
            return cls(code=str(exc.code).upper(), message=str(exc))
        if isinstance(exc, GoogleAuthError):
            return cls(code="UNAUTHENTICATED", message=str(exc))
        return cls(code="UNKNOWN", message=str(exc))


@dataclass(frozen=True)
class TokenResult:
    token: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[DeliveryError] = None


@dataclass
class DeliveryOutcome:
    """Per-token results of one multicast attempt."""
    results: List[TokenResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return self.attempted - self.success_count

    @property
    def failures(self) -> List[TokenResult]:
        return [r for r in self.results if not r.success]


class PushProviderClient:
    """Sends notifications through ``firebase_admin.messaging``."""

    def __init__(self, app=None):
        self.app = app

    def _ensure_available(self):
        if self.app is None and not _is_fcm_available():
            raise PushProviderError("Firebase Cloud Messaging is not configured")

    def send_multicast(self, tokens: List[str], title: str, body: str) -> DeliveryOutcome:
        """Send one notification to every token.

        Token lists above the FCM limit are split into batches and the
        results merged in token order. Raises ``PushProviderError`` if the
        provider rejects the request before any batch went out. A batch
        failing after that is recorded as a failure for each of its tokens.
        """
        self._ensure_available()
        notification = messaging.Notification(title=title, body=body)
        outcome = DeliveryOutcome()

        for start in range(0, len(tokens), MULTICAST_BATCH_LIMIT):
            batch = tokens[start:start + MULTICAST_BATCH_LIMIT]
            message = messaging.MulticastMessage(tokens=batch, notification=notification)
            try:
                response = messaging.send_each_for_multicast(message, app=self.app)
            except _TRANSPORT_ERRORS as e:
                if not outcome.results:
                    raise PushProviderError(f"Multicast send failed: {e}") from e
                logger.error(f"Multicast batch of {len(batch)} tokens failed: {e}")
                error = DeliveryError.from_exception(e)
                outcome.results.extend(
                    TokenResult(token=token, success=False, error=error) for token in batch
                )
                continue

            logger.info(
                f"Multicast result: {response.success_count} success, "
                f"{response.failure_count} failures"
            )
            for token, send_response in zip(batch, response.responses):
                outcome.results.append(self._to_result(token, send_response))

        return outcome

    def send_single(
        self,
        token: str,
        dry_run: bool = False,
        title: Optional[str] = None,
        body: Optional[str] = None,
    ) -> TokenResult:
        """Send to one token; with ``dry_run`` FCM only validates the request.

        Provider errors are returned in the result, not raised.
        """
        self._ensure_available()
        notification = None
        if title is not None or body is not None:
            notification = messaging.Notification(title=title, body=body)
        message = messaging.Message(token=token, notification=notification)
        try:
            message_id = messaging.send(message, dry_run=dry_run, app=self.app)
        except _TRANSPORT_ERRORS as e:
            return TokenResult(token=token, success=False, error=DeliveryError.from_exception(e))
        return TokenResult(token=token, success=True, message_id=message_id)

    @staticmethod
    def _to_result(token: str, send_response) -> TokenResult:
        if send_response.success:
            return TokenResult(token=token, success=True, message_id=send_response.message_id)
        return TokenResult(
            token=token,
            success=False,
            error=DeliveryError.from_exception(send_response.exception),
        )
