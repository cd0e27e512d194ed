import os

os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test-repurposer.db")

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from repurposer.auth import create_access_token
from repurposer.config import Settings
from repurposer.database import Base
from repurposer.models import Account, ApiUsageLog, ContentSource, User
import repurposer.models  # noqa: F401 - register tables


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings(anthropic_api_key="test-key", database_url="sqlite://")


def make_account(db, email="writer@example.com", plan_tier="free", **fields) -> Account:
    user = User(email=email, full_name="Writer")
    db.add(user)
    db.commit()
    account = Account(user_id=user.id, plan_tier=plan_tier, **fields)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@pytest.fixture
def account(db):
    return make_account(db)


@pytest.fixture
def token(db, account):
    user = db.query(User).filter(User.id == account.user_id).first()
    return create_access_token(user.id, user.email)


@pytest.fixture
def source(db, account):
    src = ContentSource(account_id=account.id, title="Podcast #12", transcript_text="We talked about pricing. " * 50)
    db.add(src)
    db.commit()
    db.refresh(src)
    return src


def usage_rows(session_factory, account_id=None) -> list[ApiUsageLog]:
    db = session_factory()
    try:
        q = db.query(ApiUsageLog)
        if account_id is not None:
            q = q.filter(ApiUsageLog.account_id == account_id)
        return q.order_by(ApiUsageLog.created_at).all()
    finally:
        db.close()


def claude_response(text="Hello", **usage) -> httpx.Response:
    body = {
        "id": "msg_01",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "usage": usage or {"input_tokens": 10, "output_tokens": 5},
    }
    return httpx.Response(200, json=body)


class ProviderStub:
    """Mock Messages API. `responses` are returned in order; the last one repeats."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses) or [claude_response()]
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        template = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return httpx.Response(template.status_code, content=template.content, headers=template.headers)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

