"""文件请求/响应模型。"""

from typing import Optional

from pydantic import BaseModel

from app.packages.drive.api.v1.schemas.common import ListEnvelope, ResponseEnvelope


class FileOut(BaseModel):
    id: int
    name: str
    key: str
    url: str
    size: int
    type: str
    user: int
    parentFolder: Optional[int] = None
    createdAt: Optional[str] = None


class DownloadResponse(BaseModel):
    success: bool = True
    url: str
    filename: str


FileResponse = ResponseEnvelope[FileOut]
FileListResponse = ListEnvelope[FileOut]
