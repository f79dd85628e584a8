from datetime import datetime, timezone

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dao import UsersDAO
from app.auth.models import ADMIN_ROLE_IDS, User
from app.config import settings
from app.dao.session_maker import SessionDep
from app.exceptions import (
    ForbiddenException,
    NoJwtException,
    NoUserIdException,
    TokenExpiredException,
    TokenNoFound,
)

ACCESS_COOKIE = "users_access_token"
REFRESH_COOKIE = "users_refresh_token"


def _token_from_header(request: Request) -> str | None:
    auth_header = request.headers.get("authorization") or ""
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return None


def get_token(request: Request):
    token = request.cookies.get(ACCESS_COOKIE) or _token_from_header(request)
    if not token:
        raise TokenNoFound
    return token


def get_token_optional(request: Request) -> str | None:
    return request.cookies.get(ACCESS_COOKIE) or _token_from_header(request)


def decode_token(token: str, token_type: str = "access") -> dict:
    """Проверка подписи, срока действия и типа токена. Бросает HTTPException 401.

    У access-токена нет поля type, у refresh-токена type == "refresh".
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        raise NoJwtException

    expire = payload.get("exp")
    if not expire:
        raise TokenExpiredException
    expire_time = datetime.fromtimestamp(int(expire), tz=timezone.utc)
    if expire_time < datetime.now(timezone.utc):
        raise TokenExpiredException

    if not payload.get("sub"):
        raise NoUserIdException
    if payload.get("type", "access") != token_type:
        raise NoJwtException
    return payload


async def get_current_user(
    token: str = Depends(get_token), session: AsyncSession = SessionDep
) -> User:
    payload = decode_token(token)
    user = await UsersDAO.find_one_or_none_by_id(
        data_id=int(payload["sub"]), session=session
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found"
        )
    return user


async def get_current_user_optional(
    token: str | None = Depends(get_token_optional), session: AsyncSession = SessionDep
) -> User | None:
    if not token:
        return None
    try:
        payload = decode_token(token)
    except HTTPException:
        return None
    return await UsersDAO.find_one_or_none_by_id(
        data_id=int(payload["sub"]), session=session
    )


async def get_current_admin_user(current_user: User = Depends(get_current_user)):
    if current_user.role_id in ADMIN_ROLE_IDS:
        return current_user
    raise ForbiddenException
