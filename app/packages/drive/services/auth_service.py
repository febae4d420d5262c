"""认证服务：注册、激活、登录/登出、找回与重置密码。"""

from datetime import timedelta
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_UNAUTHORIZED,
)
from app.packages.drive.core.exceptions import AppException, NotFound
from app.packages.drive.core.logger import logger
from app.packages.drive.core.responses import create_response
from app.packages.drive.core.security import (
    create_access_token,
    generate_lifecycle_token,
    get_password_hash,
    hash_lifecycle_token,
    verify_password,
)
from app.packages.drive.core.session import create_session, delete_session, delete_user_sessions
from app.packages.drive.core.timezone import format_datetime, utcnow
from app.packages.drive.crud.users import user_crud
from app.packages.drive.models.user import User
from app.packages.drive.services.mail_service import Mailer

DUPLICATE_EMAIL = "User with this email already exists"
INVALID_CREDENTIALS = "Invalid credentials"


def serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "isActive": user.is_active,
        "storageUsed": user.storage_used,
        "storageLimit": user.storage_limit,
        "createdAt": format_datetime(user.create_time),
    }


class AuthService:
    """账号生命周期：注册 → 邮件激活 → 登录；忘记密码 → 邮件令牌 → 重置。"""

    def __init__(self, mailer: Mailer) -> None:
        self.mailer = mailer

    def register_user(self, db: Session, *, email: str, first_name: str, last_name: str, password: str) -> dict:
        """创建未激活用户并发送激活邮件；邮件发送失败不影响注册结果。"""
        normalized_email = email.strip().lower()
        if user_crud.get_by_email(db, normalized_email):
            raise AppException(DUPLICATE_EMAIL, HTTP_STATUS_BAD_REQUEST)

        settings = get_settings()
        raw_token, token_hash = generate_lifecycle_token()
        try:
            user = user_crud.create(
                db,
                {
                    "email": normalized_email,
                    "first_name": first_name.strip(),
                    "last_name": last_name.strip(),
                    "hashed_password": get_password_hash(password),
                    "is_active": False,
                    "activation_token": token_hash,
                    "activation_token_expire": utcnow() + timedelta(hours=settings.activation_token_expire_hours),
                    "storage_used": 0,
                    "storage_limit": settings.default_storage_limit_bytes,
                },
            )
        except IntegrityError as exc:
            db.rollback()
            raise AppException(DUPLICATE_EMAIL, HTTP_STATUS_BAD_REQUEST) from exc
        logger.info("User registered: %s (id=%s)", user.email, user.id)

        if self.mailer.send_activation_email(user, raw_token):
            message = "Registration successful! Please check your email to activate your account."
        else:
            message = (
                "Registration successful! However, we could not send the activation email. "
                "Please contact support."
            )
        return create_response(message=message)

    def activate_account(self, db: Session, token: str) -> dict:
        user = user_crud.get_by_activation_token(db, hash_lifecycle_token(token), now=utcnow())
        if user is None:
            raise AppException("Invalid or expired activation token", HTTP_STATUS_BAD_REQUEST)

        user.is_active = True
        user.activation_token = None
        user.activation_token_expire = None
        user_crud.save(db, user)
        logger.info("Account activated: %s", user.email)
        return create_response(message="Account activated successfully. You can now login.")

    def login(self, db: Session, *, email: str, password: str) -> dict:
        """校验凭证并签发绑定会话的访问令牌。"""
        user = user_crud.get_by_email(db, email)
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("Login failed for %s", email)
            raise AppException(INVALID_CREDENTIALS, HTTP_STATUS_UNAUTHORIZED)
        if not user.is_active:
            raise AppException("Please activate your account first", HTTP_STATUS_UNAUTHORIZED)

        ttl_seconds = max(get_settings().access_token_expire_minutes, 1) * 60
        session_id = create_session(user.id, ttl_seconds)
        token = create_access_token({"user_id": user.id, "sid": session_id})
        logger.info("Login successful for %s", user.email)
        return create_response(token=token, user=serialize_user(user))

    def logout(self, session_id: str) -> dict:
        delete_session(session_id)
        return create_response(message="Logged out successfully")

    def forgot_password(self, db: Session, *, email: str) -> dict:
        user = user_crud.get_by_email(db, email)
        if user is None:
            raise NotFound("No account found with this email address")

        raw_token, token_hash = generate_lifecycle_token()
        user.reset_password_token = token_hash
        user.reset_password_expire = utcnow() + timedelta(minutes=get_settings().reset_token_expire_minutes)
        user_crud.save(db, user)

        if not self.mailer.send_password_reset_email(user, raw_token):
            # 邮件未送达时作废令牌，避免遗留一个无人知晓的有效令牌
            user.reset_password_token = None
            user.reset_password_expire = None
            user_crud.save(db, user)
            raise AppException(
                "Failed to send reset email. Please try again later.",
                HTTP_STATUS_INTERNAL_SERVER_ERROR,
            )
        logger.info("Password reset email sent to %s", user.email)
        return create_response(message="Password reset email sent successfully. Please check your inbox.")

    def reset_password(self, db: Session, token: str, *, password: str) -> dict:
        user = user_crud.get_by_reset_token(db, hash_lifecycle_token(token), now=utcnow())
        if user is None:
            raise AppException("Invalid or expired reset token", HTTP_STATUS_BAD_REQUEST)

        user.hashed_password = get_password_hash(password)
        user.reset_password_token = None
        user.reset_password_expire = None
        user_crud.save(db, user)
        # 旧密码下签发的登录会话全部失效
        delete_user_sessions(user.id)
        logger.info("Password reset for %s", user.email)
        return create_response(message="Password updated successfully. You can now login with your new password.")

    def me(self, user: User) -> dict:
        return create_response(user=serialize_user(user))
