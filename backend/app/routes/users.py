"""
VideoTube Backend — User Route Handlers
=========================================

What:  Registration, login, logout, token refresh and current-user endpoints.
How:   Stages multipart files with FileStager, delegates to UserService,
       wraps results in the ApiResponse envelope.

Request Flow (register):
    1. FastAPI parses the multipart form (fields + avatar/coverImage files)
    2. Each file is staged under public/uploads/temp
    3. UserService uploads them through UploadHandoff (which deletes them)
    4. 201 Created with the public user view

Cookies:
    Login and refresh set HTTP-only `accessToken` / `refreshToken` cookies in
    addition to returning the tokens in the body; logout clears both.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Request, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import VideoTubeError
from app.middleware.auth import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, get_current_user
from app.models.user import User
from app.schemas.common import ApiResponse, ErrorResponse
from app.schemas.user import LoginRequest, LoginResult, RefreshRequest, TokenPair, UserPublic
from app.services.file_stager import IMAGE_EXTENSIONS, file_stager
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

COOKIE_OPTIONS = {"httponly": True, "secure": True, "samesite": "lax"}


def _set_token_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    response.set_cookie(ACCESS_TOKEN_COOKIE, access_token, **COOKIE_OPTIONS)
    response.set_cookie(REFRESH_TOKEN_COOKIE, refresh_token, **COOKIE_OPTIONS)


@router.post(
    "/register",
    status_code=201,
    response_model=ApiResponse[UserPublic],
    responses={
        400: {"description": "Missing fields, bad file type, or avatar upload failed", "model": ErrorResponse},
        409: {"description": "Username or email already exists", "model": ErrorResponse},
    },
    summary="Register a new user with avatar and optional cover image",
)
async def register_user(
    fullname: str = Form(...),
    email: str = Form(...),
    username: str = Form(...),
    password: str = Form(...),
    avatar: Optional[UploadFile] = File(None, description="Avatar image (required)"),
    coverImage: Optional[UploadFile] = File(None, description="Cover image (optional)"),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserPublic]:
    avatar_path: Optional[str] = None
    cover_image_path: Optional[str] = None
    try:
        avatar_path = await file_stager.stage_upload("avatar", avatar, IMAGE_EXTENSIONS)
        cover_image_path = await file_stager.stage_upload("coverImage", coverImage, IMAGE_EXTENSIONS)
    except VideoTubeError:
        await file_stager.discard(avatar_path)
        raise

    user = await user_service.register(
        db=db,
        fullname=fullname,
        email=email,
        username=username,
        password=password,
        avatar_path=avatar_path,
        cover_image_path=cover_image_path,
    )
    return ApiResponse[UserPublic](
        statuscode=201,
        data=user,
        message="User registered successfully",
    )


@router.post(
    "/login",
    response_model=ApiResponse[LoginResult],
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        404: {"description": "User does not exist", "model": ErrorResponse},
    },
    summary="Log in with username or email",
)
async def login_user(
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[LoginResult]:
    result = await user_service.login(db, credentials.identifier, credentials.password)
    _set_token_cookies(response, result.access_token, result.refresh_token)
    return ApiResponse[LoginResult](
        statuscode=200,
        data=result,
        message="User logged in successfully",
    )


@router.post(
    "/logout",
    response_model=ApiResponse[dict],
    summary="Log out and revoke the refresh token",
)
async def logout_user(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[dict]:
    await user_service.logout(db, user)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)
    return ApiResponse[dict](statuscode=200, data={}, message="User logged out")


@router.post(
    "/refresh-token",
    response_model=ApiResponse[TokenPair],
    responses={401: {"description": "Refresh token invalid or revoked", "model": ErrorResponse}},
    summary="Rotate the access and refresh tokens",
)
async def refresh_access_token(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = Body(None),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TokenPair]:
    incoming = request.cookies.get(REFRESH_TOKEN_COOKIE) or (body.refresh_token if body else None)
    tokens = await user_service.refresh(db, incoming)
    _set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    return ApiResponse[TokenPair](statuscode=200, data=tokens, message="Access token refreshed")


@router.get(
    "/current-user",
    response_model=ApiResponse[UserPublic],
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Get the logged-in user",
)
async def current_user(user: User = Depends(get_current_user)) -> ApiResponse[UserPublic]:
    return ApiResponse[UserPublic](
        statuscode=200,
        data=UserPublic.model_validate(user),
        message="Current user fetched successfully",
    )
