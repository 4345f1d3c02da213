"""Tests for the FCM client wrapper."""

from unittest.mock import MagicMock, patch

import pytest
from firebase_admin import exceptions, messaging
from google.auth.exceptions import RefreshError

from app.exceptions import PushProviderError
from app.services.dispatcher import INVALID_TOKEN_MESSAGE
from app.services.push_provider import (
    MULTICAST_BATCH_LIMIT,
    DeliveryError,
    PushProviderClient,
)


@pytest.fixture
def fcm_available():
    with patch("app.services.push_provider._is_fcm_available", return_value=True):
        yield


def _batch_response(send_responses):
    response = MagicMock()
    response.responses = send_responses
    response.success_count = sum(1 for r in send_responses if r.success)
    response.failure_count = len(send_responses) - response.success_count
    return response


def _ok(message_id="projects/p/messages/1"):
    return MagicMock(success=True, message_id=message_id, exception=None)


def _failed(exc):
    return MagicMock(success=False, message_id=None, exception=exc)


class TestDeliveryError:

    def test_unregistered(self):
        error = DeliveryError.from_exception(messaging.UnregisteredError("Requested entity was not found."))
        assert error.code == "UNREGISTERED"

    def test_invalid_argument_keeps_message(self):
        error = DeliveryError.from_exception(exceptions.InvalidArgumentError(INVALID_TOKEN_MESSAGE))
        assert error.code == "INVALID_ARGUMENT"
        assert error.message == INVALID_TOKEN_MESSAGE

    def test_sender_id_mismatch(self):
        error = DeliveryError.from_exception(messaging.SenderIdMismatchError("mismatch"))
        assert error.code == "SENDER_ID_MISMATCH"

    def test_canonical_code(self):
        error = DeliveryError.from_exception(exceptions.InternalError("boom"))
        assert error.code == "INTERNAL"

    def test_missing_exception(self):
        assert DeliveryError.from_exception(None).code == "UNKNOWN"


class TestSendMulticast:

    def test_results_follow_token_order(self, fcm_available):
        client = PushProviderClient()
        response = _batch_response([
            _ok("m-a"),
            _failed(messaging.UnregisteredError("gone")),
        ])

        with patch.object(messaging, "send_each_for_multicast", return_value=response) as send:
            outcome = client.send_multicast(["a", "b"], "Title", "Body")

        message = send.call_args.args[0]
        assert message.tokens == ["a", "b"]
        assert message.notification.title == "Title"
        assert message.notification.body == "Body"
        assert outcome.attempted == 2
        assert outcome.success_count == 1
        assert outcome.results[0].message_id == "m-a"
        assert outcome.results[1].token == "b"
        assert outcome.results[1].error.code == "UNREGISTERED"

    def test_large_token_lists_are_batched(self, fcm_available):
        client = PushProviderClient()
        tokens = [f"t{i}" for i in range(MULTICAST_BATCH_LIMIT + 1)]

        def _respond(message, app=None):
            return _batch_response([_ok() for _ in message.tokens])

        with patch.object(messaging, "send_each_for_multicast", side_effect=_respond) as send:
            outcome = client.send_multicast(tokens, "Title", "Body")

        assert send.call_count == 2
        assert len(send.call_args_list[0].args[0].tokens) == MULTICAST_BATCH_LIMIT
        assert outcome.attempted == len(tokens)
        assert [r.token for r in outcome.results] == tokens

    def test_request_level_failure_raises_provider_error(self, fcm_available):
        client = PushProviderClient()

        with patch.object(
            messaging, "send_each_for_multicast", side_effect=exceptions.UnavailableError("down")
        ):
            with pytest.raises(PushProviderError):
                client.send_multicast(["a"], "Title", "Body")

    def test_failed_later_batch_keeps_delivered_results(self, fcm_available):
        client = PushProviderClient()
        tokens = [f"t{i}" for i in range(MULTICAST_BATCH_LIMIT + 1)]
        first_batch = [_ok() for _ in range(MULTICAST_BATCH_LIMIT - 1)]
        first_batch.append(_failed(messaging.UnregisteredError("gone")))

        with patch.object(
            messaging,
            "send_each_for_multicast",
            side_effect=[_batch_response(first_batch), exceptions.UnavailableError("down")],
        ):
            outcome = client.send_multicast(tokens, "Title", "Body")

        assert outcome.attempted == len(tokens)
        assert outcome.success_count == MULTICAST_BATCH_LIMIT - 1
        assert outcome.results[MULTICAST_BATCH_LIMIT - 1].error.code == "UNREGISTERED"
        last = outcome.results[-1]
        assert last.token == tokens[-1]
        assert last.success is False
        assert last.error.code == "UNAVAILABLE"

    def test_credential_refresh_failure_raises_provider_error(self, fcm_available):
        client = PushProviderClient()

        with patch.object(
            messaging, "send_each_for_multicast", side_effect=RefreshError("invalid_grant")
        ):
            with pytest.raises(PushProviderError):
                client.send_multicast(["a"], "Title", "Body")

    def test_unconfigured_firebase_raises_provider_error(self):
        client = PushProviderClient()

        with patch("app.services.push_provider._is_fcm_available", return_value=False):
            with pytest.raises(PushProviderError):
                client.send_multicast(["a"], "Title", "Body")


class TestSendSingle:

    def test_dry_run_success(self, fcm_available):
        client = PushProviderClient()

        with patch.object(messaging, "send", return_value="projects/p/messages/fake") as send:
            result = client.send_single("tok", dry_run=True)

        assert result.success is True
        message = send.call_args.args[0]
        assert message.token == "tok"
        assert send.call_args.kwargs["dry_run"] is True

    def test_provider_error_is_returned_not_raised(self, fcm_available):
        client = PushProviderClient()

        with patch.object(
            messaging, "send", side_effect=exceptions.InvalidArgumentError(INVALID_TOKEN_MESSAGE)
        ):
            result = client.send_single("tok", dry_run=True)

        assert result.success is False
        assert result.error == DeliveryError("INVALID_ARGUMENT", INVALID_TOKEN_MESSAGE)

    def test_credential_refresh_failure_is_returned_not_raised(self, fcm_available):
        client = PushProviderClient()

        with patch.object(messaging, "send", side_effect=RefreshError("invalid_grant")):
            result = client.send_single("tok", dry_run=True)

        assert result.success is False
        assert result.error.code == "UNAUTHENTICATED"
