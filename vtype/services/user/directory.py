"""
User directory backed by the ``users`` table.

Lookups used by authentication, the refresh protocol and message delivery,
plus the small set of profile mutations the HTTP surface exposes.
"""

from datetime import datetime, timezone
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import or_, select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vtype.core.exceptions import ConflictError
from vtype.core.logging import logger
from vtype.models import User


def parse_user_id(value: Union[str, UUID, None]) -> Optional[UUID]:
    """Coerce an identity to a UUID; None when it is not one."""
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


class UserDirectory:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: Union[str, UUID, None]) -> Optional[User]:
        """Return the user or None; malformed ids resolve to None."""
        uid = parse_user_id(user_id)
        if uid is None:
            return None
        return await self.db.get(User, uid)

    async def find_by_email_or_username(
        self,
        email: Optional[str] = None,
        username: Optional[str] = None
    ) -> Optional[User]:
        clauses = []
        if email:
            clauses.append(func.lower(User.email) == email.lower())
        if username:
            clauses.append(User.username == username)
        if not clauses:
            return None
        result = await self.db.execute(select(User).where(or_(*clauses)).limit(1))
        return result.scalar_one_or_none()

    async def find_by_login(self, identifier: str) -> Optional[User]:
        """Resolve a login identifier that may be either an email or a username."""
        if "@" in identifier:
            return await self.find_by_email_or_username(email=identifier)
        return await self.find_by_email_or_username(username=identifier)

    async def create_user(self, username: str, email: str, hashed_password: str) -> User:
        """
        Insert a new account.

        Raises:
            ConflictError: email or username already taken
        """
        existing = await self.find_by_email_or_username(email=email, username=username)
        if existing is not None:
            detail = (
                "Email already registered"
                if existing.email.lower() == email.lower()
                else "Username already taken"
            )
            raise ConflictError(detail=detail)

        user = User(username=username, email=email.lower(), hashed_password=hashed_password)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("Concurrent registration collided", extra={"error": str(e.orig)})
            raise ConflictError(detail="Email or username already registered")
        await self.db.refresh(user)
        logger.info("Created user", extra={"user_id": str(user.id)})
        return user

    async def record_login(self, user: User) -> User:
        user.last_login = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def update_profile(
        self,
        user: User,
        username: Optional[str] = None,
        bio: Optional[str] = None,
        profile_picture: Optional[str] = None
    ) -> User:
        if username and username != user.username:
            taken = await self.find_by_email_or_username(username=username)
            if taken is not None and taken.id != user.id:
                raise ConflictError(detail="Username already taken")
            user.username = username
        if bio is not None:
            user.bio = bio
        if profile_picture is not None:
            user.profile_picture = profile_picture
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def set_password(self, user: User, hashed_password: str) -> None:
        user.hashed_password = hashed_password
        await self.db.commit()

    async def set_active(self, user: User, active: bool) -> User:
        user.is_active = active
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(
            "Account activation changed",
            extra={"user_id": str(user.id), "is_active": active}
        )
        return user

    async def search(self, query: str, exclude: Optional[UUID] = None, limit: int = 20) -> List[User]:
        """Active users whose username starts with ``query`` (case-insensitive)."""
        pattern = query.lower().replace("%", r"\%").replace("_", r"\_") + "%"
        stmt = (
            select(User)
            .where(func.lower(User.username).like(pattern, escape="\\"))
            .where(User.is_active.is_(True))
            .order_by(User.username)
            .limit(limit)
        )
        if exclude is not None:
            stmt = stmt.where(User.id != exclude)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
