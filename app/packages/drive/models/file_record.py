"""文件记录模型：对象存储中一个对象的元数据。"""

from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.drive.models.base import Base, TimestampMixin


class FileRecord(TimestampMixin, Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    # 展示用的原始文件名
    name: Mapped[str] = mapped_column(String(255))
    # 对象存储中的 key：<user_id>/<毫秒时间戳>-<随机串>.<扩展名>
    storage_key: Mapped[str] = mapped_column(String(1024), unique=True)
    url: Mapped[str] = mapped_column(String(2048))
    size_bytes: Mapped[int] = mapped_column(BigInteger, default=0)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    parent_folder_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("folders.id"), nullable=True, index=True
    )
