"""Domain exceptions for the push service.

Every exception carries an ``ErrorKind``; the HTTP layer maps kinds to status
codes through ``STATUS_BY_KIND`` and never inspects exception types directly.
"""

import enum
from http import HTTPStatus


class ErrorKind(enum.Enum):
    not_found = "not_found"
    conflict = "conflict"
    invalid_input = "invalid_input"
    all_tokens_invalid = "all_tokens_invalid"
    delivery_unavailable = "delivery_unavailable"
    unexpected = "unexpected"


STATUS_BY_KIND = {
    ErrorKind.not_found: HTTPStatus.NOT_FOUND,
    ErrorKind.conflict: HTTPStatus.CONFLICT,
    ErrorKind.invalid_input: HTTPStatus.BAD_REQUEST,
    ErrorKind.all_tokens_invalid: HTTPStatus.BAD_REQUEST,
    ErrorKind.delivery_unavailable: HTTPStatus.GATEWAY_TIMEOUT,
    ErrorKind.unexpected: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class PushServiceException(Exception):
    """Base class for errors surfaced to API callers."""

    kind = ErrorKind.unexpected

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    @property
    def status(self) -> HTTPStatus:
        return STATUS_BY_KIND[self.kind]


class NotFoundException(PushServiceException):
    kind = ErrorKind.not_found


class ConflictException(PushServiceException):
    kind = ErrorKind.conflict


class ValidationException(PushServiceException):
    kind = ErrorKind.invalid_input


class NoTokensFoundError(NotFoundException):
    """The target user has no registered tokens."""

    def __init__(self, user_id: str):
        super().__init__(f"No user token found for {user_id}")
        self.user_id = user_id


class AllTokensInvalidError(PushServiceException):
    """Nothing was delivered and every failed token was permanently invalid."""

    kind = ErrorKind.all_tokens_invalid

    def __init__(self, user_id: str):
        super().__init__(
            f"No messages sent for userId {user_id}. "
            "All stored tokens are not valid or unregistered"
        )
        self.user_id = user_id


class DeliveryUnavailableError(PushServiceException):
    """Nothing was delivered for reasons other than token invalidity."""

    kind = ErrorKind.delivery_unavailable

    def __init__(self, user_id: str):
        super().__init__(
            f"No messages sent for userId {user_id}. See logs for more information"
        )
        self.user_id = user_id


class PushProviderError(Exception):
    """The push provider could not be reached or rejected the whole request.

    Raised by the provider client; the dispatcher decides what it means for
    the caller.
    """
