from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from fastapi.security import OAuth2PasswordRequestForm

from schoolhub.auth.dependencies import get_current_user
from schoolhub.auth.schemas import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    ProfileUpdate,
    RegisterRequest,
    UserInfo,
)
from schoolhub.auth.services import AuthService, get_auth_service
from schoolhub.core.exceptions import ServiceError
from schoolhub.core.responses import Envelope, success

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=Envelope[UserInfo],
    status_code=http_status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    try:
        return success(await service.register(payload), "Registration successful")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/login",
    response_model=Envelope[LoginResponse],
    status_code=http_status.HTTP_200_OK,
)
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    try:
        return success(await service.login(payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/login-oauth")
async def login_oauth(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service),
):
    """Form login for the OpenAPI "Authorize" button; returns the bare OAuth2 token body."""
    try:
        payload = LoginRequest(email=form_data.username.strip(), password=form_data.password)
    except ValueError:
        raise HTTPException(status_code=http_status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    try:
        result = await service.login(payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "access_token": result.access_token,
        "token_type": "bearer",
    }


@router.get("/me", response_model=Envelope[UserInfo])
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    try:
        return success(await service.get_me(current_user.id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/me", response_model=Envelope[UserInfo])
async def update_me(
    payload: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    try:
        return success(await service.update_profile(current_user.id, payload), "Profile updated")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/change-password", response_model=Envelope[None])
async def change_password(
    payload: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    try:
        await service.change_password(current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success(message="Password changed successfully")
