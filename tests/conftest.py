"""Shared fixtures: an in-memory Firestore double, a fake responder and an app client."""
import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from google.api_core.exceptions import NotFound
from google.cloud import firestore
from google.cloud.firestore_v1.transforms import ArrayUnion
from httpx import ASGITransport, AsyncClient

from mindspace.dependencies import get_firestore_client, get_gemini_service, get_youtube_service
from mindspace.errors import ResponseGenerationError
from mindspace.main import app
from mindspace.models.chat import Message, MessageRole
from mindspace.models.mood import MoodEntry
from mindspace.services.conversation_store import ConversationRepository
from mindspace.services.firebase_auth import verify_token
from mindspace.services.youtube_service import YouTubeService

TEST_UID = "user-123"


class FakeSnapshot:
    def __init__(self, path, data):
        self.id = path[-1]
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeWatch:
    def __init__(self, db, listener):
        self._db = db
        self._listener = listener

    def unsubscribe(self):
        if self._listener in self._db.listeners:
            self._db.listeners.remove(self._listener)


class FakeQuery:
    def __init__(self, db, path, filters=(), order=None, limit=None):
        self._db = db
        self._path = path
        self._filters = list(filters)
        self._order = order
        self._limit = limit

    def _copy(self, **changes):
        params = dict(filters=self._filters, order=self._order, limit=self._limit)
        params.update(changes)
        return FakeQuery(self._db, self._path, **params)

    def where(self, filter):
        assert filter.op_string == "=="
        return self._copy(filters=self._filters + [filter])

    def order_by(self, field, direction=firestore.Query.ASCENDING):
        return self._copy(order=(field, direction))

    def limit(self, count):
        return self._copy(limit=count)

    def stream(self):
        docs = [
            (path, data) for path, data in self._db.documents.items()
            if path[:-1] == self._path
            and all(data.get(f.field_path) == f.value for f in self._filters)
        ]
        if self._order:
            field, direction = self._order
            docs.sort(key=lambda item: item[1].get(field), reverse=direction == firestore.Query.DESCENDING)
        if self._limit is not None:
            docs = docs[:self._limit]
        return [FakeSnapshot(path, data) for path, data in docs]

    def on_snapshot(self, callback):
        listener = ("query", self, callback)
        self._db.listeners.append(listener)
        callback(self.stream(), [], None)
        return FakeWatch(self._db, listener)


class FakeCollection(FakeQuery):
    def document(self, document_id=None):
        return FakeDocument(self._db, self._path + (document_id or uuid.uuid4().hex[:20],))

    def add(self, data):
        doc_ref = self.document()
        doc_ref.set(data)
        return datetime.now(timezone.utc), doc_ref


class FakeDocument:
    def __init__(self, db, path):
        self._db = db
        self._path = path
        self.id = path[-1]

    def collection(self, name):
        return FakeCollection(self._db, self._path + (name,))

    def get(self):
        return FakeSnapshot(self._path, self._db.documents.get(self._path))

    def set(self, data, merge=False):
        self._db.check_write()
        current = self._db.documents.get(self._path) if merge else None
        self._db.documents[self._path] = {**(current or {}), **copy.deepcopy(data)}
        self._db.notify(self._path)

    def update(self, data):
        self._db.check_write()
        current = self._db.documents.get(self._path)
        if current is None:
            raise NotFound(f"No document to update: {'/'.join(self._path)}")
        for key, value in data.items():
            if isinstance(value, ArrayUnion):
                existing = current.setdefault(key, [])
                existing.extend(copy.deepcopy(v) for v in value.values if v not in existing)
            else:
                current[key] = copy.deepcopy(value)
        self._db.notify(self._path)

    def delete(self):
        self._db.check_write()
        self._db.documents.pop(self._path, None)
        self._db.notify(self._path)

    def on_snapshot(self, callback):
        listener = ("document", self, callback)
        self._db.listeners.append(listener)
        callback([self.get()], [], None)
        return FakeWatch(self._db, listener)


class FakeFirestore:
    """Just enough of google.cloud.firestore.Client for the repositories."""

    def __init__(self):
        self.documents = {}
        self.listeners = []
        self.writes_before_failure = None

    def collection(self, name):
        return FakeCollection(self, (name,))

    def check_write(self):
        if self.writes_before_failure is None:
            return
        if self.writes_before_failure <= 0:
            raise ConnectionError("Firestore unavailable")
        self.writes_before_failure -= 1

    def notify(self, path):
        for kind, target, callback in list(self.listeners):
            if kind == "document" and target._path == path:
                callback([target.get()], [], None)
            elif kind == "query" and target._path == path[:-1]:
                callback(target.stream(), [], None)


class FakeResponder:
    """Stands in for GeminiService."""

    def __init__(self, fail=False, mood=None):
        self.fail = fail
        self.mood = mood
        self.calls = []

    async def generate_reply(self, user_id, message_text, history=None):
        self.calls.append((user_id, message_text, list(history or [])))
        if self.fail:
            raise ResponseGenerationError()
        return Message(role=MessageRole.ASSISTANT, content=f"I hear you: {message_text}")

    async def analyze_mood(self, message_text):
        return self.mood


class TickingClock:
    """Strictly increasing timestamps so ordering never ties."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def fake_db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def clock(monkeypatch) -> TickingClock:
    ticking = TickingClock()
    monkeypatch.setattr("mindspace.services.conversation_store.utcnow", ticking)
    monkeypatch.setattr("mindspace.services.mood_service.utcnow", ticking)
    return ticking


@pytest.fixture
def repository(fake_db, clock) -> ConversationRepository:
    return ConversationRepository(fake_db)


@pytest.fixture
def responder() -> FakeResponder:
    return FakeResponder(mood=MoodEntry(mood_score=4, sentiment="anxious", topics=["anxiety"]))


@pytest_asyncio.fixture
async def client(fake_db, clock, responder) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with Firestore, Gemini, YouTube and auth swapped for doubles."""
    app.dependency_overrides[get_firestore_client] = lambda: fake_db
    app.dependency_overrides[get_gemini_service] = lambda: responder
    app.dependency_overrides[get_youtube_service] = lambda: YouTubeService(api_key="")
    app.dependency_overrides[verify_token] = lambda: {"uid": TEST_UID, "email": "test@example.com"}
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
