from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy import update as sqlalchemy_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.dao.base import BaseDAO


class UsersDAO(BaseDAO[User]):
    model = User

    @classmethod
    async def find_by_email_or_username(
        cls, session: AsyncSession, email: str, username: str
    ) -> User | None:
        query = select(cls.model).filter(
            or_(cls.model.email == email, cls.model.username == username)
        )
        result = await session.execute(query)
        return result.scalars().first()

    @classmethod
    async def increment_token_version(cls, session: AsyncSession, user_id: int) -> bool:
        """Отзыв всех refresh-токенов пользователя."""
        try:
            result = await session.execute(
                sqlalchemy_update(cls.model)
                .where(cls.model.id == user_id)
                .values(token_version=cls.model.token_version + 1)
                .execution_options(synchronize_session="fetch")
            )
            await session.flush()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Ошибка при отзыве токенов пользователя {user_id}: {e}")
            raise
        logger.info(f"Refresh-токены пользователя {user_id} отозваны.")
        return result.rowcount > 0
