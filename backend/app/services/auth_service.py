"""
Authentication service handling user registration and login.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.user import UserCreate, UserLogin
from app.core.exceptions import (
    DuplicateKeyError,
    InvalidCredentialsError,
    PersistenceError,
    ValidationError,
)
from app.core.security import hash_password_async, verify_password_async
from app.core.logging import get_logger

logger = get_logger(__name__)


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new student with a bcrypt-hashed password.
    Raises DuplicateKeyError if the student id or email is already taken.
    """
    fields = (
        user_data.student_id,
        user_data.full_name,
        user_data.phone_number,
        user_data.email,
        user_data.password,
    )
    if not all(fields):
        raise ValidationError("All fields are required")

    user = User(
        student_id=user_data.student_id,
        full_name=user_data.full_name,
        phone=user_data.phone_number,
        email=user_data.email,
        password=await hash_password_async(user_data.password),
    )
    try:
        db.add(user)
        await db.commit()
    except IntegrityError:
        # Unique violation on the primary key (student id) or email
        await db.rollback()
        logger.warning("registration_failed", reason="duplicate", student_id=user_data.student_id)
        raise DuplicateKeyError()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("registration_failed", reason="database", error=str(e))
        raise PersistenceError() from e

    logger.info("user_registered", student_id=user.student_id)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> User:
    """
    Check an email/password pair and return the matching user.
    Unknown email and wrong password raise the same InvalidCredentialsError.
    """
    if not login_data.email or not login_data.password:
        raise ValidationError("Email and password are required")

    try:
        result = await db.execute(select(User).where(User.email == login_data.email))
        user = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error("login_failed", reason="database", error=str(e))
        raise PersistenceError() from e

    if not user or not await verify_password_async(login_data.password, user.password):
        logger.warning("login_failed", reason="invalid_credentials")
        raise InvalidCredentialsError()

    logger.info("user_logged_in", student_id=user.student_id)
    return user
