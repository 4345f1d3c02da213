"""FastAPI dependency providers for the push service."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.services.dispatcher import NotificationDispatcher
from app.services.push_provider import PushProviderClient
from app.services.token_service import TokenService
from app.services.token_store import TokenStore


@lru_cache(maxsize=1)
def get_push_provider() -> PushProviderClient:
    return PushProviderClient()


def get_token_store(db: Session = Depends(get_db)) -> TokenStore:
    return TokenStore(db)


def get_dispatcher(
    store: TokenStore = Depends(get_token_store),
    provider: PushProviderClient = Depends(get_push_provider),
) -> NotificationDispatcher:
    return NotificationDispatcher(store, provider)


def get_token_service(
    store: TokenStore = Depends(get_token_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> TokenService:
    return TokenService(store, dispatcher)
