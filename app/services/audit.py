"""Audit logging helpers for token lifecycle and delivery events.

Standard single-line logs so they are easy to index.
"""
from __future__ import annotations
import logging
from typing import Optional, Any

from app.utils.datetime import utc_now

_logger = logging.getLogger("app.audit")


def mask_token(token: str) -> str:
    """Keep enough of a token to correlate log lines without storing it whole."""
    if len(token) <= 16:
        return token
    return f"{token[:12]}...{token[-4:]}"


def _emit(event: str, user_id: Optional[str] = None, **data: Any):
    payload = {"ts": utc_now().isoformat(), "event": event}
    if user_id:
        payload["user_id"] = user_id
    payload.update(data)
    parts = [f"{k}={repr(v)}" for k,v in payload.items()]
    _logger.info("AUDIT " + " ".join(parts))

# Public convenience wrappers

def log_token_register(user_id: str, token: str):
    _emit("token.register", user_id=user_id, token=mask_token(token))

def log_token_deregister(user_id: str, token: str, owner_id: Optional[str]):
    _emit("token.deregister", user_id=user_id, token=mask_token(token), owner_id=owner_id)

def log_token_invalidated(user_id: str, token: str, error_code: str):
    _emit("token.invalidate", user_id=user_id, token=mask_token(token), error_code=error_code)

def log_token_purge(cutoff: str, deleted: int):
    _emit("token.purge", cutoff=cutoff, deleted=deleted)

def log_message_send(user_id: str, attempted: int, succeeded: int, invalidated: int, outcome: str):
    _emit(
        "message.send",
        user_id=user_id,
        attempted=attempted,
        succeeded=succeeded,
        invalidated=invalidated,
        outcome=outcome,
    )
