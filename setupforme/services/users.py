"""
User signup and login.
"""
import logging
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import Identity, create_access_token, get_password_hash, verify_password
from ..models import User
from .errors import ConflictError, DependencyError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class InvalidCredentialsError(Exception):
    """Raised by login() when the email/password pair does not match."""
    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def signup(self, email: str, password: str) -> Tuple[User, str]:
        """
        Register a new user.

        Returns:
            The created user and a freshly issued access token

        Raises:
            ValidationError: Password too short
            ConflictError: Email already registered
            DependencyError: Database failure
        """
        email = normalize_email(email)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        try:
            result = await self.db.execute(select(User).where(User.email == email))
            existing = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up user {email}: {e}", exc_info=True)
            raise DependencyError("Database error") from e

        if existing is not None:
            raise ConflictError("User already exists")

        user = User(email=email, hashed_password=get_password_hash(password))
        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same email
            await self.db.rollback()
            raise ConflictError("User already exists") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create user {email}: {e}", exc_info=True)
            raise DependencyError("Failed to create user") from e

        logger.info(f"User {user.id} has registered: {user.email}")
        return user, create_access_token(Identity(user_id=user.id, email=user.email))

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        email = normalize_email(email)
        try:
            result = await self.db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up user {email}: {e}", exc_info=True)
            raise DependencyError("Database error") from e

        if user is None or not verify_password(password, user.hashed_password):
            logger.info(f"[AUTH] Failed login for {email}")
            raise InvalidCredentialsError("Invalid credentials")

        return user, create_access_token(Identity(user_id=user.id, email=user.email))
