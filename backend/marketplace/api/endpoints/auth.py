"""
Authentication API endpoints

Registration, login and the current user's profile.
"""

from fastapi import APIRouter, Depends

from ...core.security import TokenClaims
from ...schemas import AuthResponse, LoginRequest, ProfileResponse, RegisterRequest
from ...services.accounts import AccountService
from ..dependencies import get_account_service, get_current_claims

router = APIRouter(prefix="/api/auth")


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    request: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Create a student or instructor account and return an access token."""
    return await accounts.register(request)


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    return await accounts.login(request.email, request.password)


@router.get("/me", response_model=ProfileResponse)
async def me(
    claims: TokenClaims = Depends(get_current_claims),
    accounts: AccountService = Depends(get_account_service),
):
    """Profile of the authenticated user, with enrollments."""
    return await accounts.profile(claims.user_id)
