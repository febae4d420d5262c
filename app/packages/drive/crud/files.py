"""文件记录 CRUD。"""

from __future__ import annotations

from app.packages.drive.crud.base import OwnedCRUDBase
from app.packages.drive.models.file_record import FileRecord


class CRUDFileRecord(OwnedCRUDBase[FileRecord]):
    pass


file_record_crud = CRUDFileRecord(FileRecord)
