"""Общие фикстуры: чистая in-memory SQLite на каждый тест и HTTP-клиент поверх приложения."""
import itertools
import os

# Настройки читаются при импорте core.config, поэтому окружение задаём первым делом
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.database import get_db
from core.security import create_access_token
from main import app
from models.base import Base
from models.confession import Confession
from models.photo import Photo
from models.user import User

_emails = itertools.count(1)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    async def _make_user(name: str = "Alex", college: str = "IIT Bombay", **fields) -> User:
        user = User(
            email=f"user{next(_emails)}@campus.test",
            name=name,
            college=college,
            **fields,
        )
        db.add(user)
        await db.commit()
        return user

    return _make_user


@pytest.fixture
def make_confession(db):
    async def _make_confession(author: User, content: str = "I like someone in my lab", **fields) -> Confession:
        confession = Confession(
            content=content,
            category=fields.pop("category", "secret"),
            author_id=author.id,
            college=author.college,
            **fields,
        )
        db.add(confession)
        await db.commit()
        return confession

    return _make_confession


@pytest.fixture
def make_photo(db):
    async def _make_photo(owner: User, key: str, is_main: bool = False) -> Photo:
        photo = Photo(
            user_id=owner.id,
            url=f"https://cdn.test/{key}.jpg",
            storage_key=key,
            is_main=is_main,
        )
        db.add(photo)
        await db.commit()
        return photo

    return _make_photo


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict[str, str]:
        token, _ = create_access_token(user.id)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
