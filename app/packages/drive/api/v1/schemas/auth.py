"""认证相关的请求与响应模型。"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    email: EmailStr
    firstName: str = Field(..., min_length=1, max_length=100)
    lastName: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(BaseModel):
    """登录请求；邮箱大小写不敏感。"""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, max_length=72)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=6, max_length=72)


class UserOut(BaseModel):
    id: int
    email: str
    firstName: str
    lastName: str
    isActive: bool
    storageUsed: int
    storageLimit: int
    createdAt: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: UserOut


class MeResponse(BaseModel):
    success: bool = True
    user: UserOut
