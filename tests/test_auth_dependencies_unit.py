import time
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from jose import jwt
from starlette.requests import Request


def _make_request(*, cookie: str | None = None, authorization: str | None = None) -> Request:
    headers = []
    if cookie is not None:
        headers.append((b"cookie", f"users_access_token={cookie}".encode("latin-1")))
    if authorization is not None:
        headers.append((b"authorization", authorization.encode("latin-1")))
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": headers,
        "query_string": b"",
        "server": ("test", 80),
        "client": ("test", 12345),
        "scheme": "http",
        "root_path": "",
    }
    return Request(scope)


def _encode(payload: dict) -> str:
    from app.config import settings

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def test_get_token_sources():
    from app.auth.dependencies import get_token, get_token_optional

    with pytest.raises(HTTPException) as e:
        get_token(_make_request())
    assert e.value.status_code == 401

    assert get_token(_make_request(cookie="abc")) == "abc"
    assert get_token(_make_request(authorization="Bearer xyz")) == "xyz"
    # cookie имеет приоритет над заголовком
    assert get_token(_make_request(cookie="abc", authorization="Bearer xyz")) == "abc"

    assert get_token_optional(_make_request()) is None
    assert get_token_optional(_make_request(authorization="Basic xyz")) is None


@pytest.mark.asyncio
async def test_get_current_user_and_optional_branches(db_sessionmaker, ensure_user):
    from app.auth.dependencies import get_current_user, get_current_user_optional

    u = await ensure_user("dep_user")

    async with db_sessionmaker() as session:
        with pytest.raises(HTTPException) as e:
            await get_current_user(token="not-a-jwt", session=session)
        assert e.value.status_code == 401

    expired = _encode({"sub": str(u.id), "exp": int(time.time()) - 10})
    async with db_sessionmaker() as session:
        with pytest.raises(HTTPException) as e:
            await get_current_user(token=expired, session=session)
        assert e.value.status_code == 401

    no_exp = _encode({"sub": str(u.id)})
    async with db_sessionmaker() as session:
        with pytest.raises(HTTPException) as e:
            await get_current_user(token=no_exp, session=session)
        assert e.value.status_code == 401

    no_sub = _encode({"exp": int(time.time()) + 60})
    async with db_sessionmaker() as session:
        with pytest.raises(HTTPException) as e:
            await get_current_user(token=no_sub, session=session)
        assert e.value.status_code == 401

    missing_user = _encode({"sub": "999999", "exp": int(time.time()) + 60})
    async with db_sessionmaker() as session:
        with pytest.raises(HTTPException) as e:
            await get_current_user(token=missing_user, session=session)
        assert e.value.status_code == 401
        assert e.value.detail == "User not found"

    ok = _encode({"sub": str(u.id), "exp": int(time.time()) + 60})
    async with db_sessionmaker() as session:
        got = await get_current_user(token=ok, session=session)
    assert got.id == u.id

    async with db_sessionmaker() as session:
        assert await get_current_user_optional(token=None, session=session) is None
        assert await get_current_user_optional(token="bad", session=session) is None
        assert await get_current_user_optional(token=expired, session=session) is None
        got = await get_current_user_optional(token=ok, session=session)
    assert got is not None and got.id == u.id


@pytest.mark.asyncio
async def test_get_current_admin_user():
    from app.auth.dependencies import get_current_admin_user

    for role_id in (3, 4):
        admin = SimpleNamespace(role_id=role_id)
        assert await get_current_admin_user(admin) is admin

    for role_id in (1, 2):
        with pytest.raises(HTTPException) as e:
            await get_current_admin_user(SimpleNamespace(role_id=role_id))
        assert e.value.status_code == 403


@pytest.mark.asyncio
async def test_refresh_token_rejected_on_access_paths(db_sessionmaker, ensure_user):
    from app.auth.auth import create_refresh_token
    from app.auth.dependencies import (
        decode_token,
        get_current_user,
        get_current_user_optional,
    )

    u = await ensure_user("dep_refresh")
    refresh = create_refresh_token({"sub": str(u.id)}, token_version=0)

    with pytest.raises(HTTPException) as e:
        decode_token(refresh)
    assert e.value.status_code == 401
    assert decode_token(refresh, token_type="refresh")["ver"] == 0

    async with db_sessionmaker() as session:
        with pytest.raises(HTTPException) as e:
            await get_current_user(token=refresh, session=session)
        assert e.value.status_code == 401
        assert await get_current_user_optional(token=refresh, session=session) is None
