import os
import tempfile

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["AWS_S3_BUCKET"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="uploads-")

import dataclasses
import uuid
from datetime import datetime
from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app import database
from app.ai import model_router
from app.ai.openrouter_client import OpenRouterClient, reset_openrouter_client, set_openrouter_client
from app.ai.performance import performance_monitor
from app.database import Base, get_db
from app.main import app as fastapi_app
from app.models.user import User
from app.utils.session import GUEST_COOKIE_NAME, session_manager


async def _stream(chunks):
    for chunk in chunks:
        if isinstance(chunk, Exception):
            raise chunk
        yield chunk


class FakeCompletions:
    """Stands in for ``AsyncOpenAI().chat.completions``"""

    def __init__(self):
        self.streams = []
        self.replies = []
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if kwargs.get("stream"):
            if not self.streams:
                raise AssertionError("Unexpected streaming completion request")
            script = self.streams.pop(0)
            if isinstance(script, Exception):
                raise script
            return _stream(script)

        reply = self.replies.pop(0) if self.replies else "Test Title"
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeOpenAI:
    """Scripted OpenAI client: queue chunk lists for streams and texts for plain completions"""

    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls

    def queue_stream(self, *chunks):
        self.completions.streams.append(list(chunks))

    def queue_stream_error(self, error: Exception):
        self.completions.streams.append(error)

    def queue_reply(self, reply):
        self.completions.replies.append(reply)

    @staticmethod
    def text_chunk(text):
        delta = SimpleNamespace(content=text, tool_calls=None)
        return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=None)], usage=None)

    @staticmethod
    def tool_call_chunk(index, id=None, name=None, arguments=None):
        call = SimpleNamespace(
            index=index,
            id=id,
            type="function" if id else None,
            function=SimpleNamespace(name=name, arguments=arguments),
        )
        delta = SimpleNamespace(content=None, tool_calls=[call])
        return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=None)], usage=None)

    @staticmethod
    def usage_chunk(prompt_tokens, completion_tokens):
        usage = SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
        return SimpleNamespace(choices=[], usage=usage)


@pytest.fixture(autouse=True)
def isolate_globals():
    saved_rollout = dataclasses.replace(model_router.rollout_config)
    performance_monitor.reset()
    yield
    for field in dataclasses.fields(saved_rollout):
        setattr(model_router.rollout_config, field.name, getattr(saved_rollout, field.name))
    performance_monitor.reset()


@pytest_asyncio.fixture
async def session_factory(monkeypatch):
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(database, "AsyncSessionLocal", factory)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_openai():
    fake = FakeOpenAI()
    set_openrouter_client(OpenRouterClient(client=fake))
    yield fake
    reset_openrouter_client()


@pytest_asyncio.fixture
async def client(session_factory, fake_openai):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    fastapi_app.dependency_overrides.clear()


async def _create_user(db, email):
    user = User(id=uuid.uuid4(), email=email, name=email.split("@")[0], createdAt=datetime.utcnow())
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def user(db):
    return await _create_user(db, "ada@example.com")


@pytest_asyncio.fixture
async def other_user(db):
    return await _create_user(db, "grace@example.com")


@pytest_asyncio.fixture
async def guest(db):
    return await _create_user(db, f"guest-{uuid.uuid4().hex}")


@pytest.fixture
def sign_in():
    """Put a signed session (or guest) cookie for a user on the test client"""

    def _sign_in(http_client, account):
        if account.is_guest:
            value = session_manager.serializer.dumps({"guest_id": str(account.id)})
            http_client.cookies.set(GUEST_COOKIE_NAME, value)
        else:
            value = session_manager.serializer.dumps({"user_id": str(account.id)})
            http_client.cookies.set(session_manager.session_cookie_name, value)
        return http_client

    return _sign_in
