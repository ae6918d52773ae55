"""
User model for VType application.

This module defines the core User model with functionality for:
- Authentication and authorization
- Public profile fields shown next to messages
- Relationship management with messages
"""

# Standard library imports
from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
import uuid

# Third-party imports
from sqlalchemy import (
    String,
    DateTime,
    JSON,
    Uuid,
    func,
    Boolean
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

# Application imports
from vtype.db.base_class import EntityBase
from vtype.models.enums import UserRole

if TYPE_CHECKING:
    from vtype.models.chat import Message

class User(EntityBase):
    """Core user model for authentication and profile data."""

    __tablename__ = "users"
    __table_args__ = {"comment": "Core user model for authentication and profile data"}

    # Core Authentication
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    roles: Mapped[List[str]] = mapped_column(JSON, default=lambda: [UserRole.USER.value], nullable=False)

    # Profile
    profile_picture: Mapped[Optional[str]] = mapped_column(String(512))
    bio: Mapped[Optional[str]] = mapped_column(String(500))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Relationships
    sent_messages: Mapped[List["Message"]] = relationship(
        "Message",
        back_populates="sender",
        foreign_keys="Message.sender_id"
    )

    def has_role(self, role: UserRole) -> bool:
        return role.value in (self.roles or [])

    @property
    def is_admin(self) -> bool:
        return self.has_role(UserRole.ADMIN)
