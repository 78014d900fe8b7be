from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base
from app.models.common import IntIdMixin, TimestampMixin
from app.models.role import LEAST_PRIVILEGED_LEVEL, Role
from app.models.user_role import user_roles


class User(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "users"
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    img_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    about: Mapped[str | None] = mapped_column(Text, nullable=True)
    lang: Mapped[str | None] = mapped_column(String(2), nullable=True)
    email_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    roles = relationship(Role, secondary=user_roles, back_populates="users", order_by=Role.level)

    @property
    def role(self) -> Role | None:
        """Most privileged role held by the user."""
        return min(self.roles, key=lambda r: r.level, default=None)

    @property
    def role_level(self) -> int:
        role = self.role
        if role is None or role.level is None:
            return LEAST_PRIVILEGED_LEVEL
        return int(role.level)

    def has_verified_email(self) -> bool:
        return self.email_verified_at is not None
