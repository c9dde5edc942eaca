from pydantic import EmailStr

from src.schemas.common import BaseSchema, TimestampSchema
from src.utils.constants import UserRole


class UserBase(BaseSchema):
    email: EmailStr
    full_name: str
    phone: str | None = None


class UserResponse(UserBase, TimestampSchema):
    id: int
    role: UserRole
    is_active: bool
