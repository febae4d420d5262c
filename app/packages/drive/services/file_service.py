"""文件服务：上传、列表、详情、签名下载与删除。

上传顺序：单文件大小校验 → 父目录归属校验 → 配额预检 → 写对象存储 →
（同一事务内）写元数据 + 条件增加已用空间。事务失败时对刚写入的对象做补偿删除，
避免对象存储里残留无人引用的孤儿对象。

删除顺序：先删对象，成功后再删元数据并释放配额；对象删除失败时元数据保持不变。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.exceptions import AppException, InvalidInput, NotFound, UpstreamFailure
from app.packages.drive.core.logger import logger
from app.packages.drive.core.timezone import format_datetime
from app.packages.drive.crud.files import file_record_crud
from app.packages.drive.models.file_record import FileRecord
from app.packages.drive.models.user import User
from app.packages.drive.services.folder_service import folder_service
from app.packages.drive.services.object_store import ObjectStore, guess_mime
from app.packages.drive.services.quota_service import QuotaService, quota_service
from app.packages.drive.utils.path_utils import build_storage_key
from app.packages.drive.utils.size_utils import format_size

FILE_NOT_FOUND = "File not found"


def upload_too_large(limit: int) -> InvalidInput:
    return InvalidInput(f"File exceeds the maximum size of {format_size(limit)}")


def serialize_file(record: FileRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "name": record.name,
        "key": record.storage_key,
        "url": record.url,
        "size": record.size_bytes,
        "type": record.mime_type,
        "user": record.user_id,
        "parentFolder": record.parent_folder_id,
        "createdAt": format_datetime(record.create_time),
    }


class FileService:
    def __init__(self, object_store: ObjectStore, quota: QuotaService = quota_service) -> None:
        self.object_store = object_store
        self.quota = quota

    def get_file(self, db: Session, user: User, file_id: int) -> FileRecord:
        record = file_record_crud.get_owned(db, file_id, user_id=user.id)
        if record is None:
            raise NotFound(FILE_NOT_FOUND)
        return record

    def list_files(self, db: Session, user: User, *, parent_folder_id: Optional[int] = None) -> List[FileRecord]:
        return file_record_crud.list_children(db, user_id=user.id, parent_folder_id=parent_folder_id)

    def upload_file(
        self,
        db: Session,
        user: User,
        *,
        content: bytes,
        original_name: str,
        mime_type: Optional[str] = None,
        parent_folder_id: Optional[int] = None,
    ) -> FileRecord:
        settings = get_settings()
        size = len(content)
        if size > settings.max_upload_bytes:
            raise upload_too_large(settings.max_upload_bytes)
        display_name = (original_name or "").strip()
        if not display_name:
            raise InvalidInput("Please upload a file")

        if parent_folder_id is not None:
            folder_service.get_owned_folder(db, user, parent_folder_id)

        self.quota.ensure_capacity(db, user_id=user.id, delta=size)

        content_type = mime_type or guess_mime(display_name)
        key = build_storage_key(user.id, display_name)
        locator = self.object_store.put(key, content, content_type=content_type, metadata={"user-id": user.id})

        try:
            record = file_record_crud.create(
                db,
                {
                    "name": display_name,
                    "storage_key": key,
                    "url": locator,
                    "size_bytes": size,
                    "mime_type": content_type,
                    "user_id": user.id,
                    "parent_folder_id": parent_folder_id,
                },
                auto_commit=False,
            )
            self.quota.reserve(db, user_id=user.id, delta=size, auto_commit=False)
            db.commit()
        except (AppException, SQLAlchemyError) as exc:
            db.rollback()
            self._discard_object(key)
            if isinstance(exc, AppException):
                raise
            logger.exception("Failed to persist metadata for %s", key)
            raise UpstreamFailure("Failed to save file metadata") from exc

        db.refresh(record)
        logger.info("User %s uploaded file %s (%s bytes) as %s", user.id, record.id, size, key)
        return record

    def download_file(self, db: Session, user: User, file_id: int) -> Dict[str, str]:
        """返回短期签名下载地址；文件内容不经过本服务。"""
        record = self.get_file(db, user, file_id)
        ttl = get_settings().signed_url_expire_seconds
        url = self.object_store.signed_get_url(record.storage_key, ttl, filename=record.name)
        return {"url": url, "filename": record.name}

    def delete_file(self, db: Session, user: User, file_id: int) -> None:
        record = self.get_file(db, user, file_id)
        size = record.size_bytes
        # 对象删除失败会抛出 UpstreamFailure，元数据保持不变
        self.object_store.delete(record.storage_key)

        file_record_crud.hard_delete(db, record, auto_commit=False)
        self.quota.release(db, user_id=user.id, delta=size, auto_commit=False)
        db.commit()
        logger.info("User %s deleted file %s (%s bytes)", user.id, file_id, size)

    def _discard_object(self, key: str) -> None:
        """补偿删除：元数据写入失败后移除已上传的对象，失败时只记录日志。"""
        try:
            self.object_store.delete(key)
        except UpstreamFailure:
            logger.error("Orphaned object left in storage after failed upload: %s", key)
