"""Shared test fixtures for HelloStore tests."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from fastapi.testclient import TestClient

from api import create_app
from common.auth import PasswordHasher
from storefront.config import Settings
from storefront.dependencies import build_services
from storefront.models.session import SessionData
from storefront.models.user import PRIVATE_FIELDS, User
from storefront.services.auth.token_hasher import TokenHasher
from storefront.services.user.user_store import normalize_email


T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
STRONG_PASSWORD = "Str0ng!Pass"


# ─────────────────────────────────────────────────────────────────
# Motor mocks
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # count_documents etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


# ─────────────────────────────────────────────────────────────────
# In-memory stores
# ─────────────────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryUserStore:
    """Dict-backed stand-in for UserStore with the same method surface."""

    def __init__(self):
        self.docs = {}

    def _find(self, **match) -> Optional[dict]:
        for doc in self.docs.values():
            if all(doc.get(key) == value for key, value in match.items()):
                return doc
        return None

    async def ensure_indexes(self):
        return None

    async def find_by_email(self, email):
        doc = self._find(email=normalize_email(email))
        return User.from_document(doc) if doc else None

    async def find_by_id(self, user_id):
        try:
            doc = self.docs.get(ObjectId(user_id))
        except Exception:
            return None
        return User.from_document(doc) if doc else None

    async def find_by_external_id(self, external_id):
        doc = self._find(userId=external_id)
        return User.from_document(doc) if doc else None

    async def find_by_verification_token(self, token):
        doc = self._find(verificationToken=token) if token else None
        return User.from_document(doc) if doc else None

    async def find_by_reset_token(self, token):
        doc = self._find(passwordResetToken=token) if token else None
        if not doc:
            return None
        return User.from_document(doc), doc.get("passwordResetExpires")

    async def insert(self, document):
        document = dict(document)
        document["email"] = normalize_email(document["email"])
        document.setdefault("_id", ObjectId())
        self.docs[document["_id"]] = document
        return document["_id"]

    async def update_fields(self, user_id, fields, unset=()):
        doc = self.docs.get(user_id)
        if doc is None:
            return False
        doc.update(fields)
        for name in unset:
            doc.pop(name, None)
        return True

    async def mark_email_verified(self, user_id, token):
        doc = self.docs.get(user_id)
        if doc is None or doc.get("verificationToken") != token:
            return False
        doc["isEmailVerified"] = True
        doc.pop("verificationToken", None)
        doc.pop("verificationTokenExpires", None)
        return True

    async def replace_password(self, user_id, token, password_hash):
        doc = self.docs.get(user_id)
        if doc is None or doc.get("passwordResetToken") != token:
            return False
        doc["passwordHash"] = password_hash
        doc.pop("passwordResetToken", None)
        doc.pop("passwordResetExpires", None)
        return True

    async def delete(self, user_id):
        return self.docs.pop(user_id, None) is not None

    async def list_all(self, exclude_fields=PRIVATE_FIELDS):
        return [
            User.from_document({k: v for k, v in doc.items() if k not in exclude_fields})
            for doc in self.docs.values()
        ]

    async def count(self, query=None):
        query = query or {}
        return sum(
            1 for doc in self.docs.values()
            if all(doc.get(key) == value for key, value in query.items())
        )


class InMemorySessionStore:
    """Dict-backed stand-in for SessionStore, keyed by hashed id."""

    def __init__(self):
        self.docs = {}

    async def create(self, identity, now=None):
        session_id = TokenHasher.generate_token()
        self.docs[TokenHasher.hash_token(session_id)] = {
            "data": identity.to_document(),
            "createdAt": now,
            "lastActivity": now,
        }
        return session_id

    async def get(self, session_id):
        if not session_id:
            return None
        doc = self.docs.get(TokenHasher.hash_token(session_id))
        return SessionData.from_document(doc) if doc else None

    async def set(self, session_id, fields):
        doc = self.docs.get(TokenHasher.hash_token(session_id))
        if doc is not None:
            doc.update(fields)

    async def touch(self, session_id, now=None):
        await self.set(session_id, {"lastActivity": now})

    async def destroy(self, session_id):
        if not session_id:
            return False
        return self.docs.pop(TokenHasher.hash_token(session_id), None) is not None

    async def destroy_for_user(self, user_id):
        doomed = [key for key, doc in self.docs.items() if doc["data"]["id"] == user_id]
        for key in doomed:
            del self.docs[key]
        return len(doomed)


class RecordingEmailService:
    """Captures outgoing mail instead of sending it."""

    mode = "console"

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent = []

    async def send_verification_email(self, to_email, verification_link, user_name=None):
        self.sent.append({"kind": "verification", "to": to_email, "link": verification_link})
        return {"success": self.succeed, "mode": "test"}

    async def send_password_reset_email(self, to_email, reset_link, user_name=None):
        self.sent.append({"kind": "reset", "to": to_email, "link": reset_link})
        return {"success": self.succeed, "mode": "test"}

    def last_link(self) -> str:
        return self.sent[-1]["link"]


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def password_hasher():
    # Lowest bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        APP_URL="http://shop.test",
        SESSION_IDLE_TIMEOUT_MINUTES=15,
    )


@pytest.fixture
def services(settings, user_store, session_store, email_service, password_hasher, clock):
    return build_services(
        settings=settings,
        user_store=user_store,
        session_store=session_store,
        email_service=email_service,
        password_hasher=password_hasher,
        clock=clock,
    )


@pytest.fixture
def auth_flow(services):
    return services.auth_flow


@pytest.fixture
def make_user(user_store, password_hasher, clock):
    """Insert a user document directly and return its User model."""

    def _make_user(
        email="ann@example.com",
        password=STRONG_PASSWORD,
        role="customer",
        verified=True,
        status="active",
        first_name="Ann",
        last_name="Lee",
        **extra,
    ):
        doc = {
            "_id": ObjectId(),
            "userId": str(ObjectId()),
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "passwordHash": password_hasher.hash_password(password),
            "role": role,
            "accountStatus": status,
            "isEmailVerified": verified,
            "createdAt": clock(),
            "updatedAt": clock(),
            **extra,
        }
        doc["email"] = normalize_email(doc["email"])
        user_store.docs[doc["_id"]] = doc
        return User.from_document(doc)

    return _make_user


@pytest.fixture
def app(settings, services, clock):
    return create_app(settings=settings, services=services, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
