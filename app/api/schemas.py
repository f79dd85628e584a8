from datetime import datetime
from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.api import aggregates


class BaseModelConfig(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CategoryCreateSchema(BaseModelConfig):
    name: str
    desc: str = ""
    banner_urn: str | None = None


class CategoryUpdateSchema(BaseModelConfig):
    old_name: str
    new_name: str
    desc: str
    new_banner: str | None = None


class CategoryResponse(BaseModelConfig):
    id: int
    name: str
    desc: str
    banner_urn: str | None = None


class TagResponse(BaseModelConfig):
    id: int
    name: str


class BlogCreateSchemaBase(BaseModelConfig):
    title: str
    desc: str = ""
    body: str
    category_name: str
    image_urn: str | None = None
    tags: List[str] = []


class BlogCreateSchemaAdd(BaseModelConfig):
    identifier: str
    slug: str
    title: str
    desc: str
    body: str
    category_name: str
    image_urn: str | None = None
    author: str


class BlogUpdateSchema(BaseModelConfig):
    """Частичное обновление блога. Slug не меняется."""

    title: str | None = None
    desc: str | None = None
    body: str | None = None
    category_name: str | None = None
    image_urn: str | None = None


class CommentCreateSchema(BaseModelConfig):
    body: str


class CommentResponse(BaseModelConfig):
    id: int
    identifier: str
    body: str
    username: str
    created_at: datetime


class VoteRequest(BaseModel):
    value: Literal[-1, 0, 1] = Field(description="1 - за, -1 - против, 0 - снять голос")


class LikeRequest(BaseModel):
    is_liked: Literal[0, 1] = Field(description="1 - в избранное, 0 - убрать")


class BlogResponse(BaseModelConfig):
    id: int
    identifier: str
    slug: str
    title: str
    desc: str
    body: str
    image_urn: str | None = None
    category_name: str
    author: str
    is_published: bool
    created_at: datetime
    tags: List[TagResponse] = []
    comment_count: int = 0
    vote_score: int = 0
    likes_num: int = 0
    # Зависят от того, кто смотрит; существуют только в ответе
    user_vote: int = 0
    user_like: int = 0

    @classmethod
    def from_blog(cls, blog: Any, viewer: Any = None) -> "BlogResponse":
        response = cls.model_validate(blog)
        response.user_vote = aggregates.user_vote(blog, viewer)
        response.user_like = aggregates.user_like(blog, viewer)
        return response


class BlogDetailResponse(BlogResponse):
    comments: List[CommentResponse] = []


class BlogListResponse(BaseModel):
    page: int
    total_page: int
    total_result: int
    blogs: List[BlogResponse]
