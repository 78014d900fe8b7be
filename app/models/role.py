from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base
from app.models.common import IntIdMixin, TimestampMixin
from app.models.user_role import user_roles

# Lower level means more privileges; 255 is the least privileged level.
LEAST_PRIVILEGED_LEVEL = 255


class Role(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "roles"
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=LEAST_PRIVILEGED_LEVEL)

    users = relationship("User", secondary=user_roles, back_populates="roles")
