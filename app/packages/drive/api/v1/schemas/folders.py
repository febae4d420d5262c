"""文件夹请求/响应模型。"""

from typing import List, Optional

from pydantic import BaseModel

from app.packages.drive.api.v1.schemas.common import ListEnvelope, ResponseEnvelope
from app.packages.drive.api.v1.schemas.files import FileOut


class FolderCreateBody(BaseModel):
    # 空白名称交由服务层返回 400，而不是 422
    name: str
    parentFolder: Optional[int] = None


class FolderOut(BaseModel):
    id: int
    name: str
    user: int
    parentFolder: Optional[int] = None
    path: str
    createdAt: Optional[str] = None


class FolderContentsOut(BaseModel):
    folder: FolderOut
    subfolders: List[FolderOut]
    files: List[FileOut]


FolderResponse = ResponseEnvelope[FolderOut]
FolderListResponse = ListEnvelope[FolderOut]
FolderContentsResponse = ResponseEnvelope[FolderContentsOut]
