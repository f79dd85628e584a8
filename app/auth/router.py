from typing import List

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.auth import authenticate_user, create_access_token, create_refresh_token
from app.auth.dao import UsersDAO
from app.auth.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    decode_token,
    get_current_admin_user,
    get_current_user,
)
from app.auth.models import User
from app.auth.schemas import SUserAddDB, SUserAuth, SUserInfo, SUserRegister
from app.dao.session_maker import SessionDep, TransactionSessionDep
from app.exceptions import (
    IncorrectEmailOrPasswordException,
    TokenNoFound,
    TokenRevokedException,
    UserAlreadyExistsException,
)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/hello/")
async def hello() -> str:
    return "Welcome!"


@router.post("/register/")
async def register_user(
    user_data: SUserRegister, session: AsyncSession = TransactionSessionDep
) -> dict:
    existing = await UsersDAO.find_by_email_or_username(
        session=session, email=user_data.email, username=user_data.username
    )
    if existing:
        raise UserAlreadyExistsException

    user_data_dict = user_data.model_dump()
    user_data_dict.pop("confirm_password", None)
    await UsersDAO.add(session=session, values=SUserAddDB(**user_data_dict))
    logger.info(f"Зарегистрирован пользователь {user_data.username}")
    return {"message": "Вы успешно зарегистрированы!"}


@router.post("/login/")
async def auth_user(
    response: Response, user_data: SUserAuth, session: AsyncSession = SessionDep
) -> dict:
    user = await authenticate_user(
        session=session, email=user_data.email, password=user_data.password
    )
    if user is None:
        raise IncorrectEmailOrPasswordException

    access_token = create_access_token({"sub": str(user.id)})
    refresh_token = create_refresh_token(
        {"sub": str(user.id)}, token_version=user.token_version
    )
    response.set_cookie(key=ACCESS_COOKIE, value=access_token, httponly=True)
    response.set_cookie(key=REFRESH_COOKIE, value=refresh_token, httponly=True)
    return {
        "ok": True,
        "access_token": access_token,
        "refresh_token": refresh_token,
        "user": SUserInfo.model_validate(user).model_dump(),
        "message": "Авторизация успешна!",
    }


@router.post("/refresh_token/")
async def refresh_access_token(
    request: Request, response: Response, session: AsyncSession = SessionDep
) -> dict:
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise TokenNoFound

    payload = decode_token(token, token_type="refresh")
    user = await UsersDAO.find_one_or_none_by_id(
        data_id=int(payload["sub"]), session=session
    )
    if not user or payload.get("ver") != user.token_version:
        raise TokenRevokedException

    access_token = create_access_token({"sub": str(user.id)})
    response.set_cookie(key=ACCESS_COOKIE, value=access_token, httponly=True)
    return {"ok": True, "access_token": access_token}


@router.post("/revoke_refresh_tokens/{user_id}")
async def revoke_refresh_tokens_for_user(
    user_id: int,
    session: AsyncSession = TransactionSessionDep,
    user_data: User = Depends(get_current_admin_user),
) -> bool:
    return await UsersDAO.increment_token_version(session=session, user_id=user_id)


@router.api_route("/logout/", methods=["GET", "POST"])
async def logout_user():
    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(key=ACCESS_COOKIE)
    response.delete_cookie(key=REFRESH_COOKIE)
    return response


@router.get("/me/")
async def get_me(user_data: User = Depends(get_current_user)) -> SUserInfo:
    return SUserInfo.model_validate(user_data)


@router.get("/all_users/")
async def get_all_users(
    session: AsyncSession = SessionDep,
    user_data: User = Depends(get_current_admin_user),
) -> List[SUserInfo]:
    return await UsersDAO.find_all(session=session, filters=None)
