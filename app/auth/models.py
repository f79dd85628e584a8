from sqlalchemy import ForeignKey, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.dao.database import Base, str_uniq

# Роли с правами администратора
ADMIN_ROLE_IDS = (3, 4)


class Role(Base):
    name: Mapped[str_uniq]
    users: Mapped[list["User"]] = relationship(back_populates="role")

    def __repr__(self):
        return f"{self.__class__.__name__}(id={self.id}, name={self.name})"


class User(Base):
    username: Mapped[str_uniq]
    email: Mapped[str_uniq]
    password: Mapped[str]
    # Увеличение версии отзывает все выданные refresh-токены
    token_version: Mapped[int] = mapped_column(default=0, server_default=text("0"))
    role_id: Mapped[int] = mapped_column(
        ForeignKey("roles.id"), default=1, server_default=text("1")
    )
    role: Mapped["Role"] = relationship("Role", back_populates="users", lazy="joined")
    blogs: Mapped[list["Blog"]] = relationship(  # noqa: F821
        "Blog", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role_id in ADMIN_ROLE_IDS

    def __repr__(self):
        return f"{self.__class__.__name__}(id={self.id}, username={self.username})"
