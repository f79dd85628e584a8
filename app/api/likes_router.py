from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dao import BlogDAO, LikeDAO
from app.api.router import get_visible_blog
from app.api.schemas import BlogListResponse, BlogResponse, LikeRequest
from app.auth.dependencies import get_current_user
from app.auth.models import User
from app.dao.session_maker import SessionDep, TransactionSessionDep

router = APIRouter(prefix="/api/likes", tags=["Likes"])


@router.get("/my/", summary="Избранные блоги текущего пользователя")
async def get_my_likes(
    page: int = Query(1, ge=1),
    page_size: int = Query(6, ge=3, le=100),
    session: AsyncSession = SessionDep,
    user_data: User = Depends(get_current_user),
) -> BlogListResponse:
    result = await BlogDAO.get_liked_blogs(
        session=session, viewer=user_data, page=page, page_size=page_size
    )
    return BlogListResponse(**result)


@router.post("/{slug}", summary="Добавить блог в избранное или убрать")
async def set_like(
    slug: str,
    like_request: LikeRequest,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_user),
) -> BlogResponse:
    blog = await get_visible_blog(session, slug, user_data)
    await LikeDAO.set_like(
        session=session,
        blog=blog,
        username=user_data.username,
        is_liked=like_request.is_liked,
    )
    blog = await BlogDAO.find_by_slug(session=session, slug=slug)
    return BlogResponse.from_blog(blog, user_data)


@router.post("/{slug}/toggle", summary="Переключить избранное")
async def toggle_like(
    slug: str,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_user),
) -> BlogResponse:
    blog = await get_visible_blog(session, slug, user_data)
    await LikeDAO.toggle_like(session=session, blog=blog, username=user_data.username)
    blog = await BlogDAO.find_by_slug(session=session, slug=slug)
    return BlogResponse.from_blog(blog, user_data)
