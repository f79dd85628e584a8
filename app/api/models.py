import uuid
from typing import ClassVar

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, false, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.api import aggregates
from app.auth.models import User
from app.dao.database import Base, str_null_true, str_uniq


class Category(Base):
    __tablename__: ClassVar[str] = "categories"  # type: ignore[assignment]

    name: Mapped[str_uniq]
    desc: Mapped[str] = mapped_column(Text, default="")
    banner_urn: Mapped[str_null_true]

    # Переименование категории переносится на блоги средствами ORM
    blogs: Mapped[list["Blog"]] = relationship(
        back_populates="category", passive_updates=False
    )


# Промежуточная таблица для связи Many-to-Many
class BlogTag(Base):
    __tablename__: ClassVar[str] = "blog_tags"  # type: ignore[assignment]

    blog_id: Mapped[int] = mapped_column(
        ForeignKey("blogs.id", ondelete="CASCADE"), nullable=False
    )
    tag_id: Mapped[int] = mapped_column(
        ForeignKey("tags.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (UniqueConstraint("blog_id", "tag_id", name="uq_blog_tag"),)


class Blog(Base):
    identifier: Mapped[str] = mapped_column(
        String(36), unique=True, default=lambda: str(uuid.uuid4())
    )
    # Генерируется из заголовка один раз, при создании
    slug: Mapped[str] = mapped_column(Text, unique=True, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    desc: Mapped[str] = mapped_column(Text, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False)
    image_urn: Mapped[str_null_true]
    category_name: Mapped[str] = mapped_column(
        ForeignKey("categories.name", onupdate="CASCADE")
    )
    author: Mapped[str] = mapped_column(
        ForeignKey("users.username", ondelete="CASCADE"), nullable=False
    )
    is_published: Mapped[bool] = mapped_column(
        default=False, server_default=false()
    )

    user: Mapped["User"] = relationship("User", back_populates="blogs")
    category: Mapped["Category"] = relationship(back_populates="blogs")
    tags: Mapped[list["Tag"]] = relationship(
        secondary="blog_tags", back_populates="blogs"
    )
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="blog",
        cascade="all, delete-orphan",
        order_by="Comment.id",
    )
    votes: Mapped[list["Vote"]] = relationship(
        back_populates="blog", cascade="all, delete-orphan"
    )
    likes: Mapped[list["Like"]] = relationship(
        back_populates="blog", cascade="all, delete-orphan"
    )

    # Вычисляемые поля, в БД не хранятся
    @property
    def comment_count(self) -> int:
        return aggregates.comment_count(self)

    @property
    def vote_score(self) -> int:
        return aggregates.vote_score(self)

    @property
    def likes_num(self) -> int:
        return aggregates.likes_num(self)


class Tag(Base):
    name: Mapped[str] = mapped_column(String(50), unique=True)

    blogs: Mapped[list["Blog"]] = relationship(
        secondary="blog_tags", back_populates="tags"
    )


class Comment(Base):
    identifier: Mapped[str] = mapped_column(
        String(36), unique=True, default=lambda: str(uuid.uuid4())
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(
        ForeignKey("users.username", ondelete="CASCADE")
    )
    blog_id: Mapped[int] = mapped_column(ForeignKey("blogs.id", ondelete="CASCADE"))

    blog: Mapped["Blog"] = relationship(back_populates="comments")


class Vote(Base):
    value: Mapped[int] = mapped_column(default=0)
    username: Mapped[str] = mapped_column(
        ForeignKey("users.username", ondelete="CASCADE")
    )
    blog_id: Mapped[int] = mapped_column(ForeignKey("blogs.id", ondelete="CASCADE"))

    blog: Mapped["Blog"] = relationship(back_populates="votes")

    # Один голос на пользователя в рамках блога
    __table_args__ = (UniqueConstraint("blog_id", "username", name="uq_vote_user"),)


class Like(Base):
    # 1 - в избранном, 0 - нет
    is_liked: Mapped[int] = mapped_column(default=0, server_default=text("0"))
    username: Mapped[str] = mapped_column(
        ForeignKey("users.username", ondelete="CASCADE")
    )
    blog_id: Mapped[int] = mapped_column(ForeignKey("blogs.id", ondelete="CASCADE"))

    blog: Mapped["Blog"] = relationship(back_populates="likes")

    __table_args__ = (UniqueConstraint("blog_id", "username", name="uq_like_user"),)
