"""
Account Service

Registration, login, profile and password management, plus seeding the
default admin account at startup. bcrypt hashing and checks run in the
threadpool, off the event loop.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from food_delivery.core.config import Settings
from food_delivery.core.errors import (
    AuthenticationRequired,
    NotFound,
    ValidationFailed,
)
from food_delivery.core.security import hash_password, verify_password
from food_delivery.database import Database
from food_delivery.models import User, UserRole
from food_delivery.schemas import PasswordChange, ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)


class AccountService:
    """User accounts for all roles."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def _find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def register(self, data: RegisterRequest) -> User:
        """
        Create a customer or restaurant-owner account.

        Raises:
            ValidationFailed: Email already registered
        """
        if await self._find_by_email(data.email) is not None:
            raise ValidationFailed("User with this email already exists")

        user = User(
            email=data.email,
            password_hash=await run_in_threadpool(
                hash_password, data.password, self.settings.bcrypt_rounds
            ),
            name=data.name,
            phone=data.phone,
            address=data.address,
            role=data.role,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise ValidationFailed("User with this email already exists")
        await self.db.refresh(user)

        logger.info(f"Registered user #{user.id} ({user.role.value})")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """
        Raises:
            AuthenticationRequired: Unknown email or wrong password
        """
        user = await self._find_by_email(email)
        if user is None or not await run_in_threadpool(
            verify_password, password, user.password_hash
        ):
            raise AuthenticationRequired("Invalid credentials")
        return user

    async def update_profile(self, user: User, data: ProfileUpdate) -> User:
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v}
        if not changes:
            raise ValidationFailed("No fields to update")

        for field, value in changes.items():
            setattr(user, field, value)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def change_password(self, user_id: int, data: PasswordChange) -> None:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        if not await run_in_threadpool(
            verify_password, data.current_password, user.password_hash
        ):
            raise ValidationFailed("Current password is incorrect")

        user.password_hash = await run_in_threadpool(
            hash_password, data.new_password, self.settings.bcrypt_rounds
        )
        await self.db.commit()
        logger.info(f"Password changed for user #{user.id}")


async def seed_default_admin(database: Database, settings: Settings) -> bool:
    """
    Create the default admin account if no user holds its email.

    Returns:
        True if the account was created
    """
    async with database.session() as session:
        existing = await session.execute(
            select(User.id).where(User.email == settings.default_admin_email.lower())
        )
        if existing.scalar_one_or_none() is not None:
            return False

        session.add(User(
            email=settings.default_admin_email.lower(),
            password_hash=await run_in_threadpool(
                hash_password, settings.default_admin_password, settings.bcrypt_rounds
            ),
            name=settings.default_admin_name,
            role=UserRole.ADMIN,
        ))
        await session.commit()

    logger.info(f"Seeded default admin account {settings.default_admin_email}")
    return True
