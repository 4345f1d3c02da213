import os

os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

from datetime import datetime
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db import Base, get_db
from app.deps import get_push_provider
from app.exceptions import PushProviderError
from app.models.device_token import DeviceToken
from app.services.dispatcher import INVALID_TOKEN_MESSAGE, NotificationDispatcher
from app.services.push_provider import DeliveryError, DeliveryOutcome, TokenResult
from app.services.token_service import TokenService
from app.services.token_store import TokenStore

# Use SQLite in-memory for test DB
TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
# For in-memory SQLite we must use a StaticPool so multiple connections share the
# same in-memory database during the test run (TestClient requests vs test setup).
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

UNREGISTERED = DeliveryError(code="UNREGISTERED", message="Requested entity was not found.")
MALFORMED = DeliveryError(code="INVALID_ARGUMENT", message=INVALID_TOKEN_MESSAGE)
INTERNAL = DeliveryError(code="INTERNAL", message="Internal error encountered.")


# Dependency override
def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


class FakePushProvider:
    """In-memory stand-in for PushProviderClient.

    Tokens without a configured error succeed.
    """

    def __init__(self):
        self.multicast_errors: Dict[str, DeliveryError] = {}
        self.single_errors: Dict[str, DeliveryError] = {}
        self.multicast_exception: Optional[Exception] = None
        self.multicast_calls: List[tuple] = []
        self.single_calls: List[tuple] = []

    def send_multicast(self, tokens, title, body):
        self.multicast_calls.append((list(tokens), title, body))
        if self.multicast_exception is not None:
            raise self.multicast_exception
        results = []
        for token in tokens:
            error = self.multicast_errors.get(token)
            if error is None:
                results.append(TokenResult(token=token, success=True, message_id=f"msg-{token}"))
            else:
                results.append(TokenResult(token=token, success=False, error=error))
        return DeliveryOutcome(results=results)

    def send_single(self, token, dry_run=False, title=None, body=None):
        self.single_calls.append((token, dry_run))
        error = self.single_errors.get(token)
        if error is None:
            return TokenResult(token=token, success=True, message_id="dry-run")
        return TokenResult(token=token, success=False, error=error)

    def go_offline(self):
        self.multicast_exception = PushProviderError("Multicast send failed: connection refused")


@pytest.fixture(autouse=True)
def setup_test_db():
    # recreate schema for each test to ensure isolation
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def push_provider():
    provider = FakePushProvider()
    app.dependency_overrides[get_push_provider] = lambda: provider
    yield provider
    app.dependency_overrides.pop(get_push_provider, None)


@pytest.fixture
def client(push_provider):
    return TestClient(app)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def store(db_session):
    return TokenStore(db_session)


@pytest.fixture
def dispatcher(store, push_provider):
    return NotificationDispatcher(store, push_provider)


@pytest.fixture
def token_service(store, dispatcher):
    return TokenService(store, dispatcher)


@pytest.fixture
def add_token(db_session):
    """Insert a token row directly, optionally with a chosen registration time."""
    def _add(token: str, user_id: str, created_at: Optional[datetime] = None):
        record = DeviceToken(token=token, user_id=user_id)
        if created_at is not None:
            record.created_at = created_at
        db_session.add(record)
        db_session.commit()
        return record
    return _add


@pytest.fixture
def stored_tokens(db_session):
    """Return the set of token strings currently stored for a user."""
    def _tokens(user_id: str):
        db_session.expire_all()
        return {t.token for t in TokenStore(db_session).find_by_user_id(user_id)}
    return _tokens
