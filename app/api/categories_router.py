from pathlib import Path
from typing import List

import aiofiles
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dao import CategoryDAO
from app.api.schemas import CategoryCreateSchema, CategoryResponse, CategoryUpdateSchema
from app.auth.dependencies import get_current_admin_user
from app.auth.models import User
from app.config import settings
from app.dao.session_maker import SessionDep, TransactionSessionDep
from app.exceptions import CategoryNotFoundException

router = APIRouter(prefix="/api/categories", tags=["Categories"])

CHUNK_SIZE = 1024 * 1024


def banner_dir() -> Path:
    path = Path(settings.UPLOAD_DIR) / "categories"
    path.mkdir(parents=True, exist_ok=True)
    return path


@router.post("/", summary="Создать категорию")
async def create_category(
    data: CategoryCreateSchema,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_admin_user),
) -> CategoryResponse:
    errors = {}
    if not data.name.strip():
        errors["name"] = "Название категории не может быть пустым"
    elif await CategoryDAO.find_by_name_ci(session=session, name=data.name):
        errors["name"] = "Такая категория уже существует"
    if errors:
        logger.warning(f"Категория '{data.name}' не создана: {errors}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

    category = await CategoryDAO.add(session=session, values=data)
    return CategoryResponse.model_validate(category)


@router.get("/", summary="Все категории")
async def list_categories(session: AsyncSession = SessionDep) -> List[CategoryResponse]:
    return await CategoryDAO.list_all(session=session)


@router.get("/{name}", summary="Категория по названию")
async def get_category(name: str, session: AsyncSession = SessionDep) -> CategoryResponse:
    if not name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Название категории не может быть пустым",
        )
    category = await CategoryDAO.find_by_name(session=session, name=name)
    if category is None:
        raise CategoryNotFoundException
    return CategoryResponse.model_validate(category)


@router.put("/", summary="Обновить категорию")
async def update_category(
    data: CategoryUpdateSchema,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_admin_user),
) -> CategoryResponse:
    errors = {}
    if not data.old_name.strip():
        errors["old_name"] = "Укажите категорию, которую нужно изменить"
    if not data.new_name.strip():
        errors["new_name"] = "Название категории не может быть пустым"
    if not data.desc.strip():
        errors["desc"] = "Описание не может быть пустым"
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

    category = await CategoryDAO.find_by_name(session=session, name=data.old_name)
    if category is None:
        raise CategoryNotFoundException

    renamed = data.new_name.lower() != category.name.lower()
    if renamed and await CategoryDAO.find_by_name_ci(session=session, name=data.new_name):
        logger.warning(f"Категория '{data.old_name}' не переименована в '{data.new_name}'")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"new_name": "Такая категория уже существует"},
        )

    category = await CategoryDAO.update_category(
        session=session,
        category=category,
        new_name=data.new_name,
        desc=data.desc,
        new_banner=data.new_banner,
    )
    return CategoryResponse.model_validate(category)


@router.post("/{name}/banner", summary="Загрузить обложку категории")
async def upload_category_banner(
    name: str,
    file: UploadFile = File(...),
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_admin_user),
) -> dict:
    category = await CategoryDAO.find_by_name(session=session, name=name)
    if category is None:
        raise CategoryNotFoundException

    filename = Path(file.filename or "").name
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Имя файла не задано"
        )

    filename = f"{category.id}_{filename}"
    async with aiofiles.open(banner_dir() / filename, "wb") as f:
        while True:
            chunk = await file.read(CHUNK_SIZE)
            if not chunk:
                break
            await f.write(chunk)

    url = f"{settings.BASE_URL}/uploads/categories/{filename}"
    category.banner_urn = url
    await session.flush()
    logger.info(f"Обложка категории '{name}' сохранена: {url}")
    return {"url": url}
