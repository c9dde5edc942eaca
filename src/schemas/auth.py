from pydantic import EmailStr, Field

from src.schemas.common import BaseSchema
from src.schemas.user import UserResponse
from src.utils.constants import UserRole


class Token(BaseSchema):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    role: UserRole


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str


class RegisterRequest(BaseSchema):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str
    phone: str | None = None


class RegisterResponse(Token):
    """Token for the new account, issued at sign-up so the caller can book straight away."""

    user: UserResponse
