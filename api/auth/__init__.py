"""Authentication API endpoints."""

from fastapi import APIRouter, HTTPException, status, Depends, Security
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel

from auth import (
    AuthManager, get_manager, get_current_operator, auth_scheme,
    AuthError, InvalidCredentialsError
)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)

class LoginRequest(BaseModel):
    """Request model for operator login."""
    email: str
    password: str

class LoginResponse(BaseModel):
    """Response model for login."""
    token: str
    expires_at: str

@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, manager: AuthManager = Depends(get_manager)):
    """Check the operator credential and open a session."""
    try:
        return manager.login(request.email, request.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )

@router.post("/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Security(auth_scheme),
    operator: str = Depends(get_current_operator),
    manager: AuthManager = Depends(get_manager)
):
    """Log out by revoking the current session token."""
    try:
        manager.logout(credentials.credentials)
        return {"success": True}
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

@router.get("/verify")
async def verify_token(operator: str = Depends(get_current_operator)):
    """Verify the current session token."""
    return {
        "valid": True,
        "operator": operator
    }
