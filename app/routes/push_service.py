"""Token registration and message sending endpoints."""

from http import HTTPStatus
import logging

from fastapi import APIRouter, Depends

from app.deps import get_dispatcher, get_token_service
from app.schemas.push_notification import MessageRequest, StatusResponse, TokenRequest
from app.services.dispatcher import NotificationDispatcher
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)
router = APIRouter()


def _error(description: str) -> dict:
    return {"model": StatusResponse, "description": description}


@router.post(
    "/token",
    status_code=HTTPStatus.CREATED,
    response_model=StatusResponse,
    summary="Register a token",
    responses={
        400: _error("Malformed request or token rejected by FCM"),
        409: _error("Token already registered"),
        500: _error("Unexpected error"),
    },
)
def add_token(
    request: TokenRequest,
    service: TokenService = Depends(get_token_service),
):
    """Subscribe a device to push notifications by registering its FCM token."""
    logger.info(f"Add token request received: userId={request.user_id}")
    service.register(request.token, request.user_id)
    logger.info(f"Add token request succeeded: userId={request.user_id}")
    return StatusResponse.of(HTTPStatus.CREATED, "Token registered successfully")


@router.delete(
    "/token",
    response_model=StatusResponse,
    summary="Delete a token",
    responses={
        400: _error("Malformed request"),
        404: _error("Token not registered"),
        500: _error("Unexpected error"),
    },
)
def delete_token(
    request: TokenRequest,
    service: TokenService = Depends(get_token_service),
):
    """Remove a token so the device stops receiving notifications."""
    logger.info(f"Delete token request received: userId={request.user_id}")
    service.deregister(request.token, request.user_id)
    logger.info(f"Delete token request succeeded: userId={request.user_id}")
    return StatusResponse.of(HTTPStatus.OK, "Token deleted successfully")


@router.post(
    "/send",
    response_model=StatusResponse,
    summary="Send a message",
    responses={
        400: _error("Malformed request or all of the user's tokens are invalid"),
        404: _error("No tokens registered for the user"),
        504: _error("Delivery failed at the push provider"),
        500: _error("Unexpected error"),
    },
)
def send_message(
    request: MessageRequest,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Send a notification with the given title and text to every registered
    device of the user. Succeeds when at least one device accepted it."""
    logger.info(f"Send message request received: userId={request.user_id}")
    dispatcher.send(request.user_id, request.message_title, request.message_text)
    logger.info(f"Send message request succeeded: userId={request.user_id}")
    return StatusResponse.of(HTTPStatus.OK, "Message sent successfully")
