"""用户模型：账号凭证、激活/重置令牌以及存储配额计数。"""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.drive.models.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    """用户实体。

    - ``email`` 统一小写存储并唯一；
    - 激活/重置令牌只保存 SHA-256 摘要，连同过期时间一起使用；
    - ``storage_used``/``storage_limit`` 以字节计，限额在创建时确定。
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("storage_used >= 0", name="storage_used_non_negative"),
        CheckConstraint("storage_limit > 0", name="storage_limit_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    first_name: Mapped[str] = mapped_column(String(100), default="")
    last_name: Mapped[str] = mapped_column(String(100), default="")

    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    activation_token: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    activation_token_expire: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reset_password_token: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    reset_password_expire: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    storage_used: Mapped[int] = mapped_column(BigInteger, default=0)
    storage_limit: Mapped[int] = mapped_column(BigInteger)
