import uuid
from typing import Optional

from loguru import logger
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.models import Blog, BlogTag, Category, Comment, Like, Tag, Vote
from app.api.schemas import (
    BlogCreateSchemaAdd,
    BlogCreateSchemaBase,
    BlogResponse,
    BlogUpdateSchema,
)
from app.auth.models import User
from app.dao.base import BaseDAO
from app.utils import slugify


def _blog_relations():
    return (
        selectinload(Blog.tags),
        selectinload(Blog.comments),
        selectinload(Blog.votes),
        selectinload(Blog.likes),
    )


def _clamp_page(page: int, page_size: int) -> tuple[int, int]:
    return max(1, page), max(3, min(page_size, 100))


class CategoryDAO(BaseDAO[Category]):
    model = Category

    @classmethod
    async def find_by_name_ci(cls, session: AsyncSession, name: str) -> Category | None:
        """Поиск категории без учёта регистра."""
        query = select(cls.model).where(func.lower(cls.model.name) == name.lower())
        result = await session.execute(query)
        return result.scalars().first()

    @classmethod
    async def find_by_name(cls, session: AsyncSession, name: str) -> Category | None:
        result = await session.execute(select(cls.model).filter_by(name=name))
        return result.scalar_one_or_none()

    @classmethod
    async def list_all(cls, session: AsyncSession):
        result = await session.execute(select(cls.model).order_by(cls.model.name))
        return result.scalars().all()

    @classmethod
    async def update_category(
        cls,
        session: AsyncSession,
        category: Category,
        new_name: str,
        desc: str,
        new_banner: str | None = None,
    ) -> Category:
        old_name = category.name
        category.name = new_name
        category.desc = desc
        if new_banner:
            category.banner_urn = new_banner
        try:
            await session.flush()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Ошибка при обновлении категории '{old_name}': {e}")
            raise
        logger.info(f"Категория '{old_name}' обновлена, новое имя '{new_name}'.")
        return category


class TagDAO(BaseDAO[Tag]):
    model = Tag

    @classmethod
    async def add_tags(cls, session: AsyncSession, tag_names: list[str]) -> list[int]:
        """Добавление тегов в БД, возвращает список ID."""
        tag_ids = []
        for tag_name in {name.strip().lower() for name in tag_names if name.strip()}:
            stmt = select(cls.model).filter_by(name=tag_name)
            result = await session.execute(stmt)
            tag = result.scalars().first()

            if tag:
                tag_ids.append(tag.id)
                continue

            new_tag = cls.model(name=tag_name)
            session.add(new_tag)
            try:
                await session.flush()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Ошибка при добавлении тега '{tag_name}': {e}")
                raise
            logger.info(f"Тег '{tag_name}' добавлен в базу данных.")
            tag_ids.append(new_tag.id)

        return tag_ids


class BlogTagDAO(BaseDAO[BlogTag]):
    model = BlogTag

    @classmethod
    async def add_blog_tags(
        cls, session: AsyncSession, blog_id: int, tag_ids: list[int]
    ) -> None:
        if not tag_ids:
            return
        session.add_all([cls.model(blog_id=blog_id, tag_id=i) for i in tag_ids])
        try:
            await session.flush()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Ошибка при добавлении тегов блога {blog_id}: {e}")
            raise
        logger.info(f"{len(tag_ids)} тегов привязано к блогу {blog_id}.")


class BlogDAO(BaseDAO[Blog]):
    model = Blog

    @classmethod
    async def make_slug(cls, session: AsyncSession, title: str, identifier: str) -> str:
        slug = slugify(title) or identifier
        taken = await session.scalar(
            select(func.count(cls.model.id)).filter_by(slug=slug)
        )
        if taken:
            slug = f"{slug}-{uuid.uuid4().hex[:6]}"
        return slug

    @classmethod
    async def add_blog(
        cls, session: AsyncSession, author: str, data: BlogCreateSchemaBase
    ) -> Blog:
        identifier = str(uuid.uuid4())
        blog_dict = data.model_dump(exclude={"tags"})
        blog_dict.update(
            identifier=identifier,
            slug=await cls.make_slug(session, data.title, identifier),
            author=author,
        )
        blog = await cls.add(
            session=session, values=BlogCreateSchemaAdd.model_validate(blog_dict)
        )

        if data.tags:
            tag_ids = await TagDAO.add_tags(session=session, tag_names=data.tags)
            await BlogTagDAO.add_blog_tags(session=session, blog_id=blog.id, tag_ids=tag_ids)

        logger.info(f"Блог '{blog.slug}' создан пользователем {author}.")
        return await cls.find_by_slug(session=session, slug=blog.slug)

    @classmethod
    async def find_by_slug(cls, session: AsyncSession, slug: str) -> Blog | None:
        """Блог со всеми связанными коллекциями, перечитанными из БД."""
        query = (
            select(cls.model)
            .options(*_blog_relations())
            .filter_by(slug=slug)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(query)
        return result.scalar_one_or_none()

    @classmethod
    async def get_blog_list(
        cls,
        session: AsyncSession,
        viewer: User | None = None,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        author: Optional[str] = None,
        search: Optional[str] = None,
        published_only: bool = True,
        page: int = 1,
        page_size: int = 10,
    ) -> dict:
        """Список блогов с фильтрацией и пагинацией."""
        page, page_size = _clamp_page(page, page_size)

        base_query = select(cls.model)
        if published_only:
            base_query = base_query.filter_by(is_published=True)
        if category:
            base_query = base_query.filter(
                func.lower(cls.model.category_name) == category.lower()
            )
        if author:
            base_query = base_query.filter_by(author=author)
        if tag:
            base_query = base_query.filter(
                cls.model.tags.any(Tag.name == tag.strip().lower())
            )
        if search:
            search = search.strip()
            base_query = base_query.filter(
                or_(
                    cls.model.title.ilike(f"%{search}%"),
                    cls.model.desc.ilike(f"%{search}%"),
                    cls.model.body.ilike(f"%{search}%"),
                )
            )

        count_query = select(func.count()).select_from(base_query.subquery())
        total_result = await session.scalar(count_query)
        if not total_result:
            return {"page": page, "total_page": 0, "total_result": 0, "blogs": []}

        total_page = (total_result + page_size - 1) // page_size
        paginated_query = (
            base_query.options(*_blog_relations())
            .order_by(cls.model.created_at.desc(), cls.model.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await session.execute(paginated_query)
        blogs = [BlogResponse.from_blog(b, viewer) for b in result.scalars().all()]

        logger.info(f"Страница {page} получена с {len(blogs)} блогами")
        return {
            "page": page,
            "total_page": total_page,
            "total_result": total_result,
            "blogs": blogs,
        }

    @classmethod
    async def get_liked_blogs(
        cls, session: AsyncSession, viewer: User, page: int = 1, page_size: int = 6
    ) -> dict:
        """Опубликованные блоги, которые пользователь держит в избранном."""
        page, page_size = _clamp_page(page, page_size)

        liked_ids = select(Like.blog_id).filter_by(
            username=viewer.username, is_liked=1
        )
        base_query = select(cls.model).filter(
            cls.model.id.in_(liked_ids), cls.model.is_published.is_(True)
        )
        total_result = await session.scalar(
            select(func.count()).select_from(base_query.subquery())
        )
        if not total_result:
            return {"page": page, "total_page": 0, "total_result": 0, "blogs": []}

        result = await session.execute(
            base_query.options(*_blog_relations())
            .order_by(cls.model.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        blogs = [BlogResponse.from_blog(b, viewer) for b in result.scalars().all()]
        return {
            "page": page,
            "total_page": (total_result + page_size - 1) // page_size,
            "total_result": total_result,
            "blogs": blogs,
        }

    @classmethod
    async def update_blog(
        cls, session: AsyncSession, blog: Blog, values: BlogUpdateSchema
    ) -> Blog:
        slug = blog.slug
        for key, value in values.model_dump(exclude_unset=True).items():
            setattr(blog, key, value)
        try:
            await session.flush()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Ошибка при обновлении блога '{slug}': {e}")
            raise
        return await cls.find_by_slug(session=session, slug=slug)

    @classmethod
    async def delete_blog(cls, session: AsyncSession, blog: Blog) -> None:
        slug = blog.slug
        try:
            await session.delete(blog)
            await session.flush()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Ошибка при удалении блога '{slug}': {e}")
            raise
        logger.info(f"Блог '{slug}' удален.")


class CommentDAO(BaseDAO[Comment]):
    model = Comment

    @classmethod
    async def add_comment(
        cls, session: AsyncSession, blog: Blog, username: str, body: str
    ) -> Comment:
        slug = blog.slug
        comment = cls.model(blog_id=blog.id, username=username, body=body)
        session.add(comment)
        try:
            await session.flush()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Ошибка при добавлении комментария к '{slug}': {e}")
            raise
        logger.info(f"{username} прокомментировал блог '{slug}'.")
        return comment

    @classmethod
    async def list_for_blog(cls, session: AsyncSession, blog_id: int):
        result = await session.execute(
            select(cls.model).filter_by(blog_id=blog_id).order_by(cls.model.id)
        )
        return result.scalars().all()


class VoteDAO(BaseDAO[Vote]):
    model = Vote

    @classmethod
    async def set_vote(
        cls, session: AsyncSession, blog: Blog, username: str, value: int
    ) -> None:
        """Голос пользователя: создаёт, меняет или (value=0) удаляет."""
        slug = blog.slug
        result = await session.execute(
            select(cls.model).filter_by(blog_id=blog.id, username=username)
        )
        vote = result.scalar_one_or_none()
        try:
            if vote is None and value != 0:
                session.add(cls.model(blog_id=blog.id, username=username, value=value))
            elif vote is not None and value == 0:
                await session.delete(vote)
            elif vote is not None:
                vote.value = value
            await session.flush()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Ошибка при голосовании за '{slug}': {e}")
            raise
        logger.info(f"{username} проголосовал {value} за '{slug}'.")


class LikeDAO(BaseDAO[Like]):
    model = Like

    @classmethod
    async def find_for_user(
        cls, session: AsyncSession, blog_id: int, username: str
    ) -> Like | None:
        result = await session.execute(
            select(cls.model).filter_by(blog_id=blog_id, username=username)
        )
        return result.scalar_one_or_none()

    @classmethod
    async def set_like(
        cls, session: AsyncSession, blog: Blog, username: str, is_liked: int
    ) -> Like:
        slug = blog.slug
        like = await cls.find_for_user(session, blog.id, username)
        if like is None:
            like = cls.model(blog_id=blog.id, username=username, is_liked=is_liked)
            session.add(like)
        else:
            like.is_liked = is_liked
        try:
            await session.flush()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Ошибка при изменении избранного для '{slug}': {e}")
            raise
        logger.info(f"{username}: избранное '{slug}' = {is_liked}.")
        return like

    @classmethod
    async def toggle_like(cls, session: AsyncSession, blog: Blog, username: str) -> Like:
        like = await cls.find_for_user(session, blog.id, username)
        new_value = 0 if like is not None and like.is_liked else 1
        return await cls.set_like(session, blog, username, new_value)
