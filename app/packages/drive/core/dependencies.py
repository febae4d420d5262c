"""依赖注入模块：封装 FastAPI 中复用度高的依赖函数。"""

from collections.abc import Generator
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.constants import ACCESS_TOKEN_TYPE
from app.packages.drive.core.security import decode_token
from app.packages.drive.core.session import touch_session
from app.packages.drive.crud.users import user_crud
from app.packages.drive.db import session as db_session
from app.packages.drive.models.user import User
from app.packages.drive.services.auth_service import AuthService
from app.packages.drive.services.file_service import FileService
from app.packages.drive.services.mail_service import Mailer, get_mailer
from app.packages.drive.services.object_store import ObjectStore, get_object_store

security_scheme = HTTPBearer(auto_error=False)

NOT_AUTHORIZED = "Not authorized to access this route"


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@dataclass
class AuthContext:
    user: User
    session_id: str


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """解析 ``Authorization`` 头部，返回当前已激活用户及其会话，任何校验失败都返回 401。"""
    if not credentials or credentials.scheme.lower() != ACCESS_TOKEN_TYPE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHORIZED)

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHORIZED)

    user_id = payload.get("user_id")
    session_id = payload.get("sid")
    if user_id is None or session_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHORIZED)

    # 滑动会话：每次请求刷新 TTL，会话不存在即视为已登出或已过期
    ttl_seconds = max(get_settings().access_token_expire_minutes, 1) * 60
    if not touch_session(session_id, user_id, ttl_seconds):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired, please login again")

    user = user_crud.get(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User no longer exists")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Please activate your account first")

    return AuthContext(user=user, session_id=session_id)


def get_current_user(context: AuthContext = Depends(get_auth_context)) -> User:
    return context.user


def get_file_service(object_store: ObjectStore = Depends(get_object_store)) -> FileService:
    return FileService(object_store)


def get_auth_service(mailer: Mailer = Depends(get_mailer)) -> AuthService:
    return AuthService(mailer)
