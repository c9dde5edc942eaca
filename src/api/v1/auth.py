from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from src.core.dependencies import DB, ActiveUser
from src.schemas.auth import LoginRequest, RegisterRequest, RegisterResponse, Token
from src.schemas.user import UserResponse
from src.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse)
async def register(db: DB, data: RegisterRequest):
    return await auth_service.register_user(db, data)


@router.post("/login", response_model=Token)
async def login(db: DB, form_data: Annotated[OAuth2PasswordRequestForm, Depends()]):
    """OAuth2 password flow; ``username`` carries the email address."""
    data = LoginRequest(email=form_data.username, password=form_data.password)
    return await auth_service.authenticate_user(db, data)


@router.get("/me", response_model=UserResponse)
async def read_me(current_user: ActiveUser):
    return current_user
