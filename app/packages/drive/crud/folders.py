"""Folder CRUD。"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.drive.crud.base import OwnedCRUDBase
from app.packages.drive.models.folder import Folder


class CRUDFolder(OwnedCRUDBase[Folder]):
    def find_sibling(self, db: Session, *, user_id: int, parent_folder_id: Optional[int], name: str) -> Folder | None:
        """查找同一用户、同一父目录下的同名文件夹。"""
        query = self.owned_query(db, user_id=user_id).filter(Folder.name == name)
        if parent_folder_id is None:
            query = query.filter(Folder.parent_folder_id.is_(None))
        else:
            query = query.filter(Folder.parent_folder_id == parent_folder_id)
        return query.first()


folder_crud = CRUDFolder(Folder)
