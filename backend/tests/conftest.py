import json
import pytest
import httpx
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select, func

from app.main import app
from app.api.deps import get_push_client
from app.core.security import create_access_token
from app.db.database import Base, Database
from app.db.models import Chat, ChatMember, Member, PushToken
from app.integrations.pushy import PushyClient


@pytest.fixture
async def database(tmp_path):
    """A fresh on-disk SQLite store per test, installed as the app's store handle."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'chats.db'}", connect_args={"check_same_thread": False})
    await db.create_tables()
    app.state.database = db
    yield db
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await db.dispose()
    del app.state.database


@pytest.fixture
async def test_session(database):
    async with database.sessionmaker() as session:
        yield session


class PushRecorder:
    """Collects requests the Pushy client sends.

    Tokens in ``failing`` get a 500; tokens in ``crashing`` make the transport raise.
    """

    def __init__(self):
        self.requests = []
        self.failing = set()
        self.crashing = set()
        self.client = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        if body["to"] in self.crashing:
            raise ValueError("unexpected transport failure")
        if body["to"] in self.failing:
            return httpx.Response(500, json={"error": "boom"})
        return httpx.Response(200, json={"success": True})

    @property
    def tokens(self):
        return [body["to"] for body in self.requests]


@pytest.fixture
async def push_recorder():
    recorder = PushRecorder()
    client = PushyClient(
        api_key="test-key",
        base_url="https://pushy.test",
        transport=httpx.MockTransport(recorder),
    )
    recorder.client = client
    app.dependency_overrides[get_push_client] = lambda: client
    yield recorder
    app.dependency_overrides.pop(get_push_client, None)
    await client.aclose()


@pytest.fixture
async def client(database, push_recorder):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_member(test_session):
    async def _make(email: str, username: str = None, tokens=()):
        member = Member(email=email, username=username or email.split("@")[0])
        test_session.add(member)
        await test_session.flush()
        for token in tokens:
            test_session.add(PushToken(memberid=member.memberid, token=token))
        await test_session.commit()
        return member
    return _make


@pytest.fixture
def auth_headers():
    def _headers(member) -> dict:
        token = create_access_token({"memberid": member.memberid, "email": member.email})
        return {"Authorization": f"Bearer {token}"}
    return _headers


class RowCounter:
    def __init__(self, session):
        self.session = session

    async def count(self, model, **filters) -> int:
        query = select(func.count()).select_from(model)
        for column, value in filters.items():
            query = query.where(getattr(model, column) == value)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def chat_exists(self, chat_id: int) -> bool:
        return await self.count(Chat, chatid=chat_id) == 1

    async def memberships(self, chat_id: int, member_id: int = None) -> int:
        if member_id is None:
            return await self.count(ChatMember, chatid=chat_id)
        return await self.count(ChatMember, chatid=chat_id, memberid=member_id)


@pytest.fixture
def rows(test_session):
    return RowCounter(test_session)
