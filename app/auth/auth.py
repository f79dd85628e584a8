from datetime import datetime, timedelta, timezone

from jose import jwt
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dao import UsersDAO
from app.auth.schemas import EmailModel
from app.auth.utils import verify_password
from app.config import settings


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(data: dict, token_version: int) -> str:
    """Refresh-токен хранит версию, чтобы его можно было отозвать."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        days=settings.REFRESH_TOKEN_EXPIRE_DAYS
    )
    to_encode.update({"exp": expire, "ver": token_version, "type": "refresh"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def authenticate_user(email: EmailStr, password: str, session: AsyncSession):
    user = await UsersDAO.find_one_or_none(
        session=session, filters=EmailModel(email=email)
    )
    if not user or verify_password(
        plain_password=password, hashed_password=user.password
    ) is False:
        return None
    return user
