"""Login / logout routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from session_auth.auth.gate import extract_bearer_token
from session_auth.auth.http import get_context, get_user_context
from session_auth.context import AppContext
from session_auth.schemas.user import LoginRequest, SessionOut, UserOut
from session_auth.services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=SessionOut)
async def login(payload: LoginRequest, context: AppContext = Depends(get_context)):
    """Exchange email-or-phone + password for a (rotated) bearer token.

    A failed login is a bad request, not an auth failure: there is no session yet.
    """
    result = await auth_service.authenticate(payload.email, payload.phone, payload.password, context)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return SessionOut(user=UserOut.model_validate(result.user), token=result.token)


@router.post("/logout")
async def logout(request: Request, context: AppContext = Depends(get_user_context)):
    """Revoke the token presented with this request."""
    token = extract_bearer_token(request.headers.get("authorization"))
    revoked = await auth_service.logout(token, context)
    logger.info("User %s logged out", context.user.id)
    return {"success": revoked}
