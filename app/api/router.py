from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dao import BlogDAO, CategoryDAO, CommentDAO, VoteDAO
from app.api.models import Blog
from app.api.schemas import (
    BlogCreateSchemaBase,
    BlogDetailResponse,
    BlogListResponse,
    BlogResponse,
    BlogUpdateSchema,
    CommentCreateSchema,
    CommentResponse,
    VoteRequest,
)
from app.auth.dependencies import get_current_user, get_current_user_optional
from app.auth.models import User
from app.dao.session_maker import SessionDep, TransactionSessionDep
from app.exceptions import (
    BlogNotFoundException,
    CategoryNotFoundException,
    ForbiddenException,
    NotAuthorException,
)

router = APIRouter(prefix="/api", tags=["API"])


def can_view(blog: Blog, viewer: User | None) -> bool:
    """Черновик видят только автор и администраторы."""
    if blog.is_published:
        return True
    return viewer is not None and (viewer.username == blog.author or viewer.is_admin)


async def get_visible_blog(session: AsyncSession, slug: str, viewer: User | None) -> Blog:
    blog = await BlogDAO.find_by_slug(session=session, slug=slug)
    if blog is None or not can_view(blog, viewer):
        raise BlogNotFoundException
    return blog


async def get_own_blog(session: AsyncSession, slug: str, viewer: User) -> Blog:
    blog = await BlogDAO.find_by_slug(session=session, slug=slug)
    if blog is None:
        raise BlogNotFoundException
    if blog.author != viewer.username:
        raise NotAuthorException
    return blog


@router.post("/blogs/", summary="Создание блога")
async def create_blog(
    add_data: BlogCreateSchemaBase,
    user_data: User = Depends(get_current_user),
    session: AsyncSession = TransactionSessionDep,
) -> BlogResponse:
    errors = {}
    if not add_data.title.strip():
        errors["title"] = "Заголовок не может быть пустым"
    if not add_data.body.strip():
        errors["body"] = "Текст блога не может быть пустым"
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

    category = await CategoryDAO.find_by_name(session=session, name=add_data.category_name)
    if category is None:
        raise CategoryNotFoundException

    blog = await BlogDAO.add_blog(session=session, author=user_data.username, data=add_data)
    return BlogResponse.from_blog(blog, user_data)


@router.get("/blogs/", summary="Опубликованные блоги")
async def get_blogs(
    category: str | None = None,
    tag: str | None = None,
    author: str | None = None,
    search: str | None = Query(None, description="Поиск по заголовку, описанию и тексту"),
    page: int = Query(1, ge=1, description="Номер страницы"),
    page_size: int = Query(10, ge=3, le=100, description="Записей на странице"),
    session: AsyncSession = SessionDep,
    viewer: User | None = Depends(get_current_user_optional),
) -> BlogListResponse:
    result = await BlogDAO.get_blog_list(
        session=session,
        viewer=viewer,
        category=category,
        tag=tag,
        author=author,
        search=search,
        page=page,
        page_size=page_size,
    )
    return BlogListResponse(**result)


@router.get("/my_blogs/", summary="Блоги текущего пользователя, включая черновики")
async def get_my_blogs(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=3, le=100),
    session: AsyncSession = SessionDep,
    user_data: User = Depends(get_current_user),
) -> BlogListResponse:
    result = await BlogDAO.get_blog_list(
        session=session,
        viewer=user_data,
        author=user_data.username,
        published_only=False,
        page=page,
        page_size=page_size,
    )
    return BlogListResponse(**result)


@router.get("/blogs/{slug}", summary="Блог с комментариями")
async def get_blog(
    slug: str,
    session: AsyncSession = SessionDep,
    viewer: User | None = Depends(get_current_user_optional),
) -> BlogDetailResponse:
    blog = await get_visible_blog(session, slug, viewer)
    return BlogDetailResponse.from_blog(blog, viewer)


@router.patch("/blogs/{slug}", summary="Редактирование блога автором")
async def update_blog(
    slug: str,
    update_data: BlogUpdateSchema,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_user),
) -> BlogResponse:
    blog = await get_own_blog(session, slug, user_data)

    errors = {}
    for field in ("title", "body"):
        value = getattr(update_data, field)
        if field in update_data.model_fields_set and (value is None or not value.strip()):
            errors[field] = "Поле не может быть пустым"
    for field in ("desc", "category_name"):
        if field in update_data.model_fields_set and getattr(update_data, field) is None:
            errors[field] = "Поле не может быть пустым"
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

    if update_data.category_name is not None:
        category = await CategoryDAO.find_by_name(
            session=session, name=update_data.category_name
        )
        if category is None:
            raise CategoryNotFoundException

    blog = await BlogDAO.update_blog(session=session, blog=blog, values=update_data)
    return BlogResponse.from_blog(blog, user_data)


@router.patch("/blogs/{slug}/publish", summary="Публикация или снятие с публикации")
async def publish_blog(
    slug: str,
    is_published: bool = True,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_user),
) -> dict:
    blog = await get_own_blog(session, slug, user_data)
    if blog.is_published == is_published:
        return {
            "message": "Статус блога не изменился.",
            "status": "info",
            "slug": slug,
            "is_published": is_published,
        }

    blog.is_published = is_published
    await session.flush()
    logger.info(f"Блог '{slug}': is_published={is_published}")
    return {
        "message": "Статус блога успешно изменен.",
        "status": "success",
        "slug": slug,
        "is_published": is_published,
    }


@router.delete("/blogs/{slug}", summary="Удалить блог")
async def delete_blog(
    slug: str,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_user),
) -> dict:
    blog = await BlogDAO.find_by_slug(session=session, slug=slug)
    if blog is None:
        raise BlogNotFoundException
    if blog.author != user_data.username and not user_data.is_admin:
        raise ForbiddenException

    await BlogDAO.delete_blog(session=session, blog=blog)
    return {"message": f"Блог '{slug}' успешно удален.", "status": "success"}


@router.post("/blogs/{slug}/comments", summary="Комментировать блог")
async def add_comment(
    slug: str,
    comment_data: CommentCreateSchema,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_user),
) -> CommentResponse:
    if not comment_data.body.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"body": "Комментарий не может быть пустым"},
        )
    blog = await get_visible_blog(session, slug, user_data)
    comment = await CommentDAO.add_comment(
        session=session, blog=blog, username=user_data.username, body=comment_data.body
    )
    await session.refresh(comment)
    return CommentResponse.model_validate(comment)


@router.get("/blogs/{slug}/comments", summary="Комментарии блога")
async def get_comments(
    slug: str,
    session: AsyncSession = SessionDep,
    viewer: User | None = Depends(get_current_user_optional),
) -> List[CommentResponse]:
    blog = await get_visible_blog(session, slug, viewer)
    return await CommentDAO.list_for_blog(session=session, blog_id=blog.id)


@router.post("/blogs/{slug}/vote", summary="Проголосовать за блог")
async def vote_blog(
    slug: str,
    vote_data: VoteRequest,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_user),
) -> BlogResponse:
    blog = await get_visible_blog(session, slug, user_data)
    await VoteDAO.set_vote(
        session=session, blog=blog, username=user_data.username, value=vote_data.value
    )
    blog = await BlogDAO.find_by_slug(session=session, slug=slug)
    return BlogResponse.from_blog(blog, user_data)
