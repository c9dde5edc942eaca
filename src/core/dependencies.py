from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Annotated, Any

from fastapi import Depends, Query
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import AuthenticationError, AuthorizationError
from src.core.security import decode_token
from src.database import async_session_maker
from src.models.user import User
from src.utils.constants import UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _user_id_from_token(token: str) -> int:
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        raise AuthenticationError()
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError() from None


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    user = await db.get(User, _user_id_from_token(token))
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthorizationError("Inactive user")
    return user


def require_role(role: UserRole) -> Callable[[User], Coroutine[Any, Any, User]]:
    """Dependency factory admitting only active users holding ``role``.

    Roles do not nest: an admin is not a driver and cannot act on trips.
    """

    async def dependency(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role != role:
            raise AuthorizationError(f"{role.value.capitalize()} access required")
        return current_user

    return dependency


class PaginationParams:
    def __init__(
        self,
        page: Annotated[int, Query(ge=1)] = 1,
        limit: Annotated[int, Query(ge=1, le=100)] = 20,
    ):
        self.page = page
        self.limit = limit


# Type aliases for cleaner dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
ActiveUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_role(UserRole.ADMIN))]
DriverUser = Annotated[User, Depends(require_role(UserRole.DRIVER))]
Pagination = Annotated[PaginationParams, Depends()]
