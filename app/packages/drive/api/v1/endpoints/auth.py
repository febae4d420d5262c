"""认证相关路由定义。"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    RegisterRequest,
    ResetPasswordRequest,
)
from app.packages.drive.api.v1.schemas.common import MessageResponse
from app.packages.drive.core.dependencies import AuthContext, get_auth_context, get_auth_service, get_current_user, get_db
from app.packages.drive.models.user import User
from app.packages.drive.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """创建未激活账号并发送激活邮件。"""
    return auth_service.register_user(
        db,
        email=payload.email,
        first_name=payload.firstName,
        last_name=payload.lastName,
        password=payload.password,
    )


@router.get("/activate/{token}", response_model=MessageResponse)
def activate(token: str, db: Session = Depends(get_db), auth_service: AuthService = Depends(get_auth_service)):
    return auth_service.activate_account(db, token)


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db), auth_service: AuthService = Depends(get_auth_service)):
    """校验凭证并签发访问令牌。"""
    return auth_service.login(db, email=payload.email, password=payload.password)


@router.post("/logout", response_model=MessageResponse)
def logout(
    context: AuthContext = Depends(get_auth_context),
    auth_service: AuthService = Depends(get_auth_service),
):
    """删除当前会话，之后该令牌立即失效。"""
    return auth_service.logout(context.session_id)


@router.post("/forgotpassword", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    return auth_service.forgot_password(db, email=payload.email)


@router.put("/resetpassword/{token}", response_model=MessageResponse)
def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    return auth_service.reset_password(db, token, password=payload.password)


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user), auth_service: AuthService = Depends(get_auth_service)):
    return auth_service.me(current_user)
