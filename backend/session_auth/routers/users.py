"""User API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, status

from session_auth.auth.http import get_context, require_user
from session_auth.context import AppContext
from session_auth.models.user import User
from session_auth.schemas.user import SessionOut, UserCreate, UserOut
from session_auth.services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, context: AppContext = Depends(get_context)):
    """Create an account and return it with its first session token."""
    result = await auth_service.create_user(payload, context)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return SessionOut(user=UserOut.model_validate(result.user), token=result.token)


@router.get("/me", response_model=UserOut)
async def get_me(user: User = Depends(require_user)):
    """The user behind the presented bearer token."""
    return user


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: int, context: AppContext = Depends(get_context)):
    """Fetch a single user by ID."""
    result = await auth_service.find_user_by_id(user_id, context)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.error)
    if result.user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return result.user
