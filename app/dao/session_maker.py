from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.dao.database import async_session_maker


class DatabaseSessionManager:
    """
    Сессии БД для эндпоинтов.

    Эндпоинты на TransactionSessionDep часто отвечают 400/403/404 уже после
    первых запросов к БД. Такой HTTPException откатывает транзакцию, но в лог
    идёт одной строкой, без трассировки: это ответ клиенту, а не сбой.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    @asynccontextmanager
    async def create_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_maker() as session:
            try:
                yield session
            except HTTPException:
                raise
            except Exception as e:
                logger.error(f"Ошибка в сессии базы данных: {e}")
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self, session: AsyncSession) -> AsyncGenerator[None, None]:
        try:
            yield
            await session.commit()
        except HTTPException as e:
            await session.rollback()
            logger.info(f"Откат транзакции, ответ {e.status_code}: {e.detail}")
            raise
        except Exception as e:
            await session.rollback()
            logger.exception(f"Откат транзакции: {e}")
            raise

    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.create_session() as session:
            yield session

    async def get_transaction_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.create_session() as session:
            async with self.transaction(session):
                yield session

    @property
    def session_dependency(self) -> Callable:
        """Сессия только для чтения (без коммита)."""
        return Depends(self.get_session)

    @property
    def transaction_session_dependency(self) -> Callable:
        return Depends(self.get_transaction_session)


session_manager = DatabaseSessionManager(async_session_maker)

SessionDep = session_manager.session_dependency
TransactionSessionDep = session_manager.transaction_session_dependency
