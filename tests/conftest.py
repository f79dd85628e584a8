import os
import re
import sys
from pathlib import Path
from typing import AsyncGenerator, Callable, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from loguru import logger as loguru_logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Гарантируем, что корень проекта в sys.path (pytest в некоторых режимах импорта может его не добавить).
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# `app.config.Settings` требует SECRET_KEY ещё до импорта приложения.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")

PASSWORD = "secret123"


def _safe_filename(name: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9_.-]+", "_", name)
    return name[:150] or "test"


@pytest.fixture(scope="session")
def test_data_dir() -> Path:
    p = PROJECT_ROOT / "test_data"
    p.mkdir(parents=True, exist_ok=True)
    (p / "logs").mkdir(parents=True, exist_ok=True)
    return p


@pytest.fixture(autouse=True)
def test_log(
    request: pytest.FixtureRequest, test_data_dir: Path
) -> Generator[Callable[[str], None], None, None]:
    """Логи loguru на время теста пишутся в `test_data/logs`."""
    log_path = test_data_dir / "logs" / f"{_safe_filename(request.node.nodeid)}.log"
    sink_id = loguru_logger.add(
        str(log_path), level="DEBUG", enqueue=False, backtrace=True, diagnose=False
    )

    def _log(msg: str) -> None:
        loguru_logger.info(msg)

    yield _log

    loguru_logger.remove(sink_id)


@pytest.fixture(scope="session")
def _db_url(test_data_dir: Path) -> str:
    db_path = test_data_dir / "test_db.sqlite3"
    if db_path.exists():
        db_path.unlink()
    return f"sqlite+aiosqlite:///{db_path.as_posix()}"


@pytest.fixture(scope="session")
async def db_engine(_db_url: str) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(_db_url)

    # Импортируем модели ДО create_all, чтобы они зарегистрировались в metadata.
    from app.api import models as _api_models  # noqa: F401
    from app.auth import models as _auth_models  # noqa: F401
    from app.dao.database import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    from app.auth.models import Role

    SessionLocal = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with SessionLocal() as session:
        session.add_all(
            [
                Role(id=1, name="User"),
                Role(id=2, name="Moderator"),
                Role(id=3, name="Admin"),
                Role(id=4, name="SuperAdmin"),
            ]
        )
        await session.commit()

    yield engine
    await engine.dispose()


@pytest.fixture(scope="session")
def db_sessionmaker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="session")
def app(db_sessionmaker: async_sessionmaker[AsyncSession]):
    from app.dao.session_maker import session_manager
    from app.main import app as fastapi_app

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_sessionmaker() as session:
            yield session

    async def override_get_transaction_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[session_manager.get_session] = override_get_session
    fastapi_app.dependency_overrides[session_manager.get_transaction_session] = (
        override_get_transaction_session
    )

    return fastapi_app


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    # httpx.AsyncClient сохраняет cookies между запросами
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test", follow_redirects=False
    ) as ac:
        yield ac


@pytest.fixture
async def make_client(app):
    """Отдельный клиент (со своими cookies) на каждого пользователя в тесте."""
    clients: list[AsyncClient] = []

    async def _impl() -> AsyncClient:
        ac = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            follow_redirects=False,
        )
        clients.append(ac)
        return ac

    yield _impl

    for ac in clients:
        await ac.aclose()


@pytest.fixture
async def ensure_user(db_sessionmaker: async_sessionmaker[AsyncSession]):
    """Идемпотентное создание пользователя с известным паролем."""
    from app.auth.dao import UsersDAO
    from app.auth.models import User
    from app.auth.schemas import EmailModel, SUserAddDB
    from app.auth.utils import get_password_hash

    async def _impl(username: str, *, password: str = PASSWORD, role_id: int = 1) -> User:
        email = f"{username}@example.com"
        async with db_sessionmaker() as session:
            existing = await UsersDAO.find_one_or_none(
                session=session, filters=EmailModel(email=email)
            )
            if existing:
                return existing

            new_user = await UsersDAO.add(
                session=session,
                values=SUserAddDB(
                    username=username,
                    email=email,
                    password=get_password_hash(password),
                ),
            )
            new_user.role_id = role_id
            await session.commit()
            return new_user

    return _impl


@pytest.fixture
async def login_as(ensure_user, make_client):
    """Создаёт пользователя и возвращает авторизованный клиент."""

    async def _impl(username: str, *, role_id: int = 1) -> AsyncClient:
        await ensure_user(username, role_id=role_id)
        ac = await make_client()
        r = await ac.post(
            "/auth/login/",
            json={"email": f"{username}@example.com", "password": PASSWORD},
        )
        assert r.status_code == 200, r.text
        return ac

    return _impl


@pytest.fixture
async def category(db_sessionmaker: async_sessionmaker[AsyncSession]):
    from app.api.models import Category

    async with db_sessionmaker() as session:
        cat = Category(name="Python", desc="Всё о Python")
        session.add(cat)
        await session.commit()
        return cat


@pytest.fixture
def upload_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    from app.config import settings

    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture(autouse=True)
async def _clean_test_db(db_sessionmaker: async_sessionmaker[AsyncSession]):
    """
    БД в тестах session-scoped, поэтому чистим таблицы перед каждым тестом,
    сохраняя `roles` (они сидятся один раз).
    """
    async with db_sessionmaker() as session:
        # порядок важен из-за FK
        for table in (
            "likes",
            "votes",
            "comments",
            "blog_tags",
            "blogs",
            "tags",
            "categories",
            "users",
        ):
            await session.execute(text(f"DELETE FROM {table}"))
        await session.commit()
