"""安全模块：密码哈希、JWT 签发/解析，以及激活/重置令牌的生成与摘要。"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
from jose import JWTError, jwt

from .config import get_settings
from .constants import LIFECYCLE_TOKEN_BYTES
from .logger import logger


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """校验明文密码与已存储哈希值是否匹配。"""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def create_access_token(subject: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """根据传入载荷生成带有过期时间的签名 JWT。"""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta else timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = subject.copy()
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_temporary_token(subject: Dict[str, Any], *, expires_seconds: int) -> str:
    """创建短期有效、不绑定会话的 JWT，用于本地存储的签名下载链接。"""
    return create_access_token(subject, timedelta(seconds=max(int(expires_seconds or 0), 1)))


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """解析访问令牌；过期由会话存储的滑动 TTL 控制，因此这里不校验 ``exp``。"""
    return decode_and_verify_token(token, verify_exp=False)


def decode_and_verify_token(token: str, *, verify_exp: bool = True) -> Optional[Dict[str, Any]]:
    """解码并校验 JWT，默认校验过期时间；非法或过期时返回 ``None``。"""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": verify_exp},
        )
    except JWTError as exc:  # pragma: no cover - logging side effect
        logger.warning("Failed to verify JWT: %s", exc)
        return None


def hash_lifecycle_token(raw_token: str) -> str:
    """激活/重置令牌只以 SHA-256 摘要形式入库。"""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_lifecycle_token() -> Tuple[str, str]:
    """生成一次性令牌，返回 ``(明文, 摘要)``：明文通过邮件发送，摘要写入数据库。"""
    raw = secrets.token_hex(LIFECYCLE_TOKEN_BYTES)
    return raw, hash_lifecycle_token(raw)

