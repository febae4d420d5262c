"""文件路由：上传、列表、详情、签名下载与删除。

``/files/signed`` 仅供本地对象存储使用，凭短期令牌直接读取对象，不需要登录；
它必须在 ``/files/{file_id}`` 之前注册。
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse as FileStreamResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.packages.drive.api.v1.schemas.common import ResponseEnvelope
from app.packages.drive.api.v1.schemas.files import DownloadResponse, FileListResponse, FileResponse
from app.packages.drive.core.config import get_settings
from app.packages.drive.core.dependencies import get_current_user, get_db, get_file_service
from app.packages.drive.core.exceptions import InvalidInput, NotFound
from app.packages.drive.core.responses import create_list_response, create_response
from app.packages.drive.models.user import User
from app.packages.drive.services.file_service import FileService, serialize_file, upload_too_large
from app.packages.drive.services.object_store import LocalObjectStore, ObjectStore, get_object_store

router = APIRouter(prefix="/files", tags=["files"])


async def read_upload_content(file: UploadFile, limit: int) -> bytes:
    """读取上传内容，最多读取 ``limit + 1`` 字节；超过上限立即拒绝，不缓冲整个请求体。"""
    if file.size is not None and file.size > limit:
        raise upload_too_large(limit)
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise upload_too_large(limit)
    return content


@router.post("/upload", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    parentFolder: Optional[int] = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    """上传单个文件（multipart 字段 ``file``），可选放入 ``parentFolder``。"""
    if file is None or not file.filename:
        raise InvalidInput("Please upload a file")
    try:
        content = await read_upload_content(file, get_settings().max_upload_bytes)
    finally:
        await file.close()
    # 数据库与对象存储调用都是同步的，放到线程池里执行
    record = await run_in_threadpool(
        file_service.upload_file,
        db,
        current_user,
        content=content,
        original_name=file.filename,
        mime_type=file.content_type,
        parent_folder_id=parentFolder,
    )
    return create_response(serialize_file(record))


@router.get("", response_model=FileListResponse)
def list_files(
    folder: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    records = file_service.list_files(db, current_user, parent_folder_id=folder)
    return create_list_response([serialize_file(record) for record in records])


@router.get("/signed", include_in_schema=False)
def read_signed_object(t: str = Query(...), object_store: ObjectStore = Depends(get_object_store)):
    if not isinstance(object_store, LocalObjectStore):
        raise NotFound("Signed download is served by the object store directly")
    signed = object_store.open_signed(t)
    return FileStreamResponse(signed.path, media_type=signed.media_type, filename=signed.filename)


@router.get("/{file_id}", response_model=FileResponse)
def get_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    return create_response(serialize_file(file_service.get_file(db, current_user, file_id)))


@router.get("/{file_id}/download", response_model=DownloadResponse)
def download_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    """返回 5 分钟有效的签名下载地址，由客户端直接从对象存储下载。"""
    return create_response(**file_service.download_file(db, current_user, file_id))


@router.delete("/{file_id}", response_model=ResponseEnvelope[dict])
def delete_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    file_service.delete_file(db, current_user, file_id)
    return create_response({})
