"""
Credential store — persisted users and their password hashes.

Hashing happens explicitly inside ``create`` / ``update_password``; the
model itself never hashes on assignment.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import DuplicateEmail
from auth.password import hash_password, needs_rehash, verify_password
from database.models import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, name: str, email: str, password: str) -> User:
        """
        Insert a new user.

        Uniqueness is left to the ``users.email`` unique constraint so two
        concurrent registrations cannot both succeed; the losing insert
        surfaces as ``DuplicateEmail``.
        """
        user = User(
            name=name,
            email=normalize_email(email),
            password_hash=hash_password(password),
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.info("Registration rejected, email already in use: %s", user.email)
            raise DuplicateEmail() from exc
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def get(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    @staticmethod
    def verify(user: Optional[User], password: str) -> bool:
        """False for a missing user, after the same bcrypt work as a real check."""
        return verify_password(password, user.password_hash if user is not None else None)

    @staticmethod
    def needs_rehash(user: User) -> bool:
        return needs_rehash(user.password_hash)

    async def update_password(self, user: User, password: str) -> None:
        user.password_hash = hash_password(password)
        await self.session.flush()

    async def delete(self, user: User) -> None:
        """Remove a user; the foreign key cascades to their tasks."""
        await self.session.delete(user)
        await self.session.flush()
        logger.info("Deleted user %s", user.id)
