"""Вычисляемые поля блога.

Все функции работают с уже загруженным блогом (ORM-объект или любой объект
с атрибутами ``comments``, ``votes``, ``likes``) и ничего в нём не меняют.
Отсутствующая или незагруженная коллекция считается пустой.
"""

from typing import Any, Iterable

from sqlalchemy import inspect


def _collection(blog: Any, name: str) -> Iterable[Any]:
    # Обращение к незагруженной связи в async-сессии вызвало бы запрос к БД
    state = inspect(blog, raiseerr=False)
    if state is not None and name in state.unloaded:
        return ()
    return getattr(blog, name, None) or ()


def _viewer_value(records: Iterable[Any], viewer: Any, field: str) -> int:
    username = getattr(viewer, "username", None)
    if username is None:
        return 0
    # При дублях побеждает первая запись; в БД дубли запрещены уникальным индексом
    for record in records:
        if record.username == username:
            return getattr(record, field, None) or 0
    return 0


def comment_count(blog: Any) -> int:
    return len(list(_collection(blog, "comments")))


def vote_score(blog: Any) -> int:
    return sum(vote.value or 0 for vote in _collection(blog, "votes"))


def likes_num(blog: Any) -> int:
    """Сколько пользователей сейчас держат блог в избранном."""
    return sum(like.is_liked or 0 for like in _collection(blog, "likes"))


def user_vote(blog: Any, viewer: Any) -> int:
    """Голос пользователя ``viewer`` за блог, 0 если не голосовал."""
    return _viewer_value(_collection(blog, "votes"), viewer, "value")


def user_like(blog: Any, viewer: Any) -> int:
    return _viewer_value(_collection(blog, "likes"), viewer, "is_liked")
