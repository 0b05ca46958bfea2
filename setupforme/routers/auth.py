"""
Signup and login endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..database import get_db
from ..schemas import AuthResponse, Credentials, UserRead
from ..services.errors import SetupForMeError
from ..services.users import InvalidCredentialsError, UserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=201)
async def signup(
    credentials: Credentials,
    db: AsyncSession = Depends(get_db)
):
    """Register a new user and return an access token."""
    try:
        user, token = await UserService(db).signup(credentials.email, credentials.password)
    except SetupForMeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

    return AuthResponse(token=token, user=UserRead.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: Credentials,
    db: AsyncSession = Depends(get_db)
):
    """Exchange email and password for an access token."""
    try:
        user, token = await UserService(db).login(credentials.email, credentials.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "authentication", "message": "Invalid credentials"},
        )
    except SetupForMeError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

    return AuthResponse(token=token, user=UserRead.model_validate(user))
