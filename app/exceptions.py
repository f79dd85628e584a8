from fastapi import HTTPException, status

# Пользователь уже существует
UserAlreadyExistsException = HTTPException(
    status_code=status.HTTP_409_CONFLICT, detail="Пользователь уже существует"
)

# Неверная почта или пароль
IncorrectEmailOrPasswordException = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED, detail="Неверная почта или пароль"
)

TokenExpiredException = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED, detail="Токен истек"
)

TokenNoFound = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED, detail="Токен не найден"
)

NoJwtException = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED, detail="Токен не валидный!"
)

NoUserIdException = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED, detail="Не найден ID пользователя"
)

# Refresh-токен отозван через token_version
TokenRevokedException = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED, detail="Токен отозван"
)

ForbiddenException = HTTPException(
    status_code=status.HTTP_403_FORBIDDEN, detail="Недостаточно прав!"
)

NotAuthorException = HTTPException(
    status_code=status.HTTP_403_FORBIDDEN,
    detail="Изменять блог может только его автор",
)

BlogNotFoundException = HTTPException(
    status_code=status.HTTP_404_NOT_FOUND, detail="Блог не найден"
)

CategoryNotFoundException = HTTPException(
    status_code=status.HTTP_404_NOT_FOUND, detail="Категория не найдена"
)
