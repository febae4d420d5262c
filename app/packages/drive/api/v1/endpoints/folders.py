"""文件夹路由：所有接口都只作用于当前用户自己的目录树。"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.folders import (
    FolderContentsResponse,
    FolderCreateBody,
    FolderListResponse,
    FolderResponse,
)
from app.packages.drive.api.v1.schemas.common import ResponseEnvelope
from app.packages.drive.core.dependencies import get_current_user, get_db
from app.packages.drive.core.responses import create_list_response, create_response
from app.packages.drive.models.user import User
from app.packages.drive.services.file_service import serialize_file
from app.packages.drive.services.folder_service import folder_service, serialize_folder

router = APIRouter(prefix="/folders", tags=["folders"])


@router.post("", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
def create_folder(
    payload: FolderCreateBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    folder = folder_service.create_folder(db, current_user, name=payload.name, parent_folder_id=payload.parentFolder)
    return create_response(serialize_folder(folder))


@router.get("", response_model=FolderListResponse)
def list_folders(
    parent: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """列出某目录下的直接子文件夹，未指定 ``parent`` 时为根目录。"""
    folders = folder_service.list_folders(db, current_user, parent_folder_id=parent)
    return create_list_response([serialize_folder(folder) for folder in folders])


@router.get("/{folder_id}/contents", response_model=FolderContentsResponse)
def get_folder_contents(
    folder_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    contents = folder_service.get_folder_contents(db, current_user, folder_id)
    return create_response(
        {
            "folder": serialize_folder(contents["folder"]),
            "subfolders": [serialize_folder(item) for item in contents["subfolders"]],
            "files": [serialize_file(item) for item in contents["files"]],
        }
    )


@router.delete("/{folder_id}", response_model=ResponseEnvelope[dict])
def delete_folder(
    folder_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """仅允许删除空文件夹，不做级联删除。"""
    folder_service.delete_folder(db, current_user, folder_id)
    return create_response({})
