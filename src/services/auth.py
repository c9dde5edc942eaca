import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.exceptions import AuthenticationError, ConflictError
from src.core.security import create_access_token, get_password_hash, verify_password
from src.models.user import User
from src.schemas.auth import LoginRequest, RegisterRequest, RegisterResponse, Token
from src.schemas.user import UserResponse
from src.utils.constants import UserRole

logger = logging.getLogger(__name__)


def issue_token(user: User) -> Token:
    # Role is informational for clients; authorization always reloads the user
    access_token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return Token(
        access_token=access_token,
        expires_in=settings.access_token_expire_minutes * 60,
        role=user.role,
    )


async def register_user(db: AsyncSession, data: RegisterRequest) -> RegisterResponse:
    """Self-service sign-up. Always creates a customer; drivers and admins are provisioned."""
    result = await db.execute(select(User).where(User.email == data.email))
    if result.scalar_one_or_none():
        raise ConflictError("Email already registered")

    user = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        full_name=data.full_name,
        phone=data.phone,
        role=UserRole.CUSTOMER,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    logger.info("Registered customer %d", user.id)

    token = issue_token(user)
    return RegisterResponse(**token.model_dump(), user=UserResponse.model_validate(user))


async def authenticate_user(db: AsyncSession, data: LoginRequest) -> Token:
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(data.password, user.hashed_password):
        logger.info("Rejected login for %s", data.email)
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise AuthenticationError("User account is disabled")

    return issue_token(user)
