import traceback

from fastapi import APIRouter, Depends, HTTPException, status

from voicenote.controllers.deps import get_repository
from voicenote.controllers.views.user import (
    LoginRequest,
    LoginResponse,
    UserCreateRequest,
    UserResponse,
)
from voicenote.persistence.base import Repository
from voicenote.services.users import authenticate, register_user
from voicenote.util.errors import AppError, ValidationError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Users"])


@router.post(
    "/users",
    summary="Create account",
    description="Creates a user and its default settings. Rejects a duplicate email or username.",
    response_model=UserResponse,
)
async def create_user(
    payload: UserCreateRequest, repo: Repository = Depends(get_repository)
) -> UserResponse:
    try:
        user = await register_user(
            repo,
            username=payload.username,
            email=payload.email,
            password=payload.password,
            language=payload.language,
        )
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error creating user: {e}\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create user",
        )
    return UserResponse(id=user.id, username=user.username, email=user.email)


@router.post(
    "/auth/login",
    summary="Log in",
    description="Checks email and password and returns the account.",
    response_model=LoginResponse,
)
async def login(
    payload: LoginRequest, repo: Repository = Depends(get_repository)
) -> LoginResponse:
    if not payload.email or not payload.password:
        raise ValidationError("Email and password required")
    try:
        user = await authenticate(repo, payload.email, payload.password)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error during login: {e}\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Login failed"
        )
    return LoginResponse(
        id=user.id, username=user.username, email=user.email, language=user.language
    )
