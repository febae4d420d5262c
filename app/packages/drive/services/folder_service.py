"""文件夹服务：创建、列出、查看内容与删除（仅允许删除空目录）。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.packages.drive.core.exceptions import DuplicateName, InvalidInput, NotEmpty, NotFound
from app.packages.drive.core.logger import logger
from app.packages.drive.core.timezone import format_datetime
from app.packages.drive.crud.files import file_record_crud
from app.packages.drive.crud.folders import folder_crud
from app.packages.drive.models.file_record import FileRecord
from app.packages.drive.models.folder import Folder
from app.packages.drive.models.user import User
from app.packages.drive.utils.path_utils import join_folder_path

FOLDER_NOT_FOUND = "Folder not found"


def serialize_folder(folder: Folder) -> Dict[str, Any]:
    return {
        "id": folder.id,
        "name": folder.name,
        "user": folder.user_id,
        "parentFolder": folder.parent_folder_id,
        "path": folder.path,
        "createdAt": format_datetime(folder.create_time),
    }


class FolderService:
    def get_owned_folder(self, db: Session, user: User, folder_id: int) -> Folder:
        """获取属于当前用户的文件夹；他人的文件夹与不存在的一样返回 NotFound。"""
        folder = folder_crud.get_owned(db, folder_id, user_id=user.id)
        if folder is None:
            raise NotFound(FOLDER_NOT_FOUND)
        return folder

    def create_folder(self, db: Session, user: User, *, name: str, parent_folder_id: Optional[int] = None) -> Folder:
        clean_name = (name or "").strip()
        if not clean_name:
            raise InvalidInput("Folder name is required")
        if "/" in clean_name:
            raise InvalidInput("Folder name cannot contain '/'")

        if folder_crud.find_sibling(db, user_id=user.id, parent_folder_id=parent_folder_id, name=clean_name):
            raise DuplicateName()

        parent_path = None
        if parent_folder_id is not None:
            parent_path = self.get_owned_folder(db, user, parent_folder_id).path

        try:
            folder = folder_crud.create(
                db,
                {
                    "name": clean_name,
                    "user_id": user.id,
                    "parent_folder_id": parent_folder_id,
                    "path": join_folder_path(parent_path, clean_name),
                },
            )
        except IntegrityError as exc:
            # 并发创建同名目录时由唯一约束兜底
            db.rollback()
            raise DuplicateName() from exc
        logger.info("User %s created folder %s (%s)", user.id, folder.id, folder.path)
        return folder

    def list_folders(self, db: Session, user: User, *, parent_folder_id: Optional[int] = None) -> List[Folder]:
        return folder_crud.list_children(db, user_id=user.id, parent_folder_id=parent_folder_id)

    def get_folder_contents(self, db: Session, user: User, folder_id: int) -> Dict[str, Any]:
        """返回文件夹本身及其直接子目录、直接子文件（只展开一层）。"""
        folder = self.get_owned_folder(db, user, folder_id)
        subfolders = folder_crud.list_children(db, user_id=user.id, parent_folder_id=folder.id)
        files: List[FileRecord] = file_record_crud.list_children(db, user_id=user.id, parent_folder_id=folder.id)
        return {"folder": folder, "subfolders": subfolders, "files": files}

    def delete_folder(self, db: Session, user: User, folder_id: int) -> None:
        folder = self.get_owned_folder(db, user, folder_id)
        child_folders = folder_crud.count_in_folder(db, folder_id=folder.id)
        child_files = file_record_crud.count_in_folder(db, folder_id=folder.id)
        if child_folders > 0 or child_files > 0:
            raise NotEmpty()
        folder_crud.hard_delete(db, folder)
        logger.info("User %s deleted folder %s", user.id, folder_id)


folder_service = FolderService()
