"""测试夹具：内存 SQLite + httpx ASGI 客户端"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOGIN_ATTEMPT_STORE", "database")

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from encurtador.database import Base, get_db, set_sqlite_pragma
from encurtador.main import app
from encurtador.models import User
from encurtador.models.user import ROLE_ADMIN, ROLE_USER
from encurtador.utils.cache import invalidate_cache
from encurtador.utils.security import create_session_token, hash_password

ADMIN_PASSWORD = "admin-pass"
USER_PASSWORD = "user-pass"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", set_sqlite_pragma)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    invalidate_cache()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _make_user(db, username, password, role, email):
    user = User(
        username=username,
        email=email,
        full_name=username.title(),
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def admin(db):
    return await _make_user(db, "admin", ADMIN_PASSWORD, ROLE_ADMIN, "admin@example.com")


@pytest.fixture
async def user(db):
    return await _make_user(db, "maria", USER_PASSWORD, ROLE_USER, "maria@example.com")


def auth_headers(user):
    return {"Authorization": f"Bearer {create_session_token(user.id)}"}


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def user_headers(user):
    return auth_headers(user)
