from fastapi import APIRouter, Depends, status

from ..dependencies import get_auth_service
from ..schemas.auth import AuthResponse, LoginRequest, SignupRequest
from ..services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return await service.signup(payload.email, payload.password, payload.username)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return await service.login(payload.email, payload.password)
