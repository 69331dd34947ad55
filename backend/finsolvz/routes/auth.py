"""
Finsolvz Backend — Auth Routes
===============================

Public endpoints (no bearer token):
    POST /api/login            → {"access_token": "..."}
    POST /api/forgot-password  → temporary password + reset token by email
    POST /api/reset-password   → set a new password with a reset token
"""

from fastapi import APIRouter, Depends

from finsolvz.dependencies import get_auth_service
from finsolvz.schemas.auth import ForgotPasswordRequest, LoginRequest, LoginResponse, ResetPasswordRequest
from finsolvz.schemas.common import MessageResponse, error_responses
from finsolvz.services.auth_service import AuthService

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses=error_responses(400, 401, 500),
    summary="Exchange email and password for an access token",
)
async def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)) -> LoginResponse:
    token = await service.login(str(body.email), body.password)
    return LoginResponse(access_token=token)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses=error_responses(400, 404, 500),
    summary="Email a temporary password and reset token",
)
async def forgot_password(
    body: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await service.forgot_password(str(body.email))
    return MessageResponse(message="New password has been sent to your email")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses=error_responses(400, 500),
    summary="Set a new password using a reset token",
)
async def reset_password(
    body: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await service.reset_password(body.token, body.new_password)
    return MessageResponse(message="Password successfully reset")
