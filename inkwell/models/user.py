"""ORM model for application users (auth, sessions and RBAC)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from inkwell.core.roles import Role
from inkwell.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    refresh_token holds the single live refresh token (one session per account);
    it is overwritten on every login/refresh and cleared on logout.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(64), nullable=False)
    last_name = Column(String(64), nullable=False)
    role = Column(String(32), nullable=False, default=Role.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    refresh_token = Column(Text, nullable=True)

    bio = Column(Text, nullable=True)
    phone = Column(String(32), nullable=True)
    address = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    posts = relationship(
        "Post",
        back_populates="author",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
