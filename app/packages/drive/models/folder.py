"""文件夹模型：按用户隔离的树形节点。

存储规则：
- ``parent_folder_id`` 为空表示位于根目录；
- ``path`` 在创建时由父路径拼接而成（根目录下为 ``/<name>``），之后不再更新；
- 同一用户、同一父目录下名称唯一。根目录的父 ID 为 NULL，普通唯一约束不会拦截
  NULL 重复，因此额外建立一个仅作用于根目录的部分唯一索引。
"""

from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.drive.models.base import Base, TimestampMixin


class Folder(TimestampMixin, Base):
    __tablename__ = "folders"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    parent_folder_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("folders.id"), nullable=True, index=True
    )
    path: Mapped[str] = mapped_column(String(2048))

    __table_args__ = (
        UniqueConstraint("user_id", "parent_folder_id", "name", name="uq_folders_user_parent_name"),
        Index(
            "uq_folders_user_root_name",
            "user_id",
            "name",
            unique=True,
            sqlite_where=text("parent_folder_id IS NULL"),
            postgresql_where=text("parent_folder_id IS NULL"),
        ),
    )
