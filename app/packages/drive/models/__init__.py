"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.drive.models.file_record import FileRecord
from app.packages.drive.models.folder import Folder
from app.packages.drive.models.user import User

__all__ = ["FileRecord", "Folder", "User"]
