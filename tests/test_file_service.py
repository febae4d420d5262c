"""文件服务的单元测试：元数据写入失败时的补偿删除。"""

from typing import Dict, Optional

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.packages.drive.core.exceptions import QuotaExceeded, UpstreamFailure
from app.packages.drive.crud.files import file_record_crud
from app.packages.drive.models.file_record import FileRecord
from app.packages.drive.models.user import User
from app.packages.drive.services.file_service import FileService
from app.packages.drive.services.object_store import ObjectStore
from app.packages.drive.services.quota_service import QuotaService


class MemoryObjectStore(ObjectStore):
    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}

    def put(self, key: str, data: bytes, *, content_type: Optional[str] = None, metadata: Optional[dict] = None) -> str:
        self.objects[key] = data
        return f"memory://{key}"

    def signed_get_url(self, key: str, ttl_seconds: int, *, filename: Optional[str] = None) -> str:
        return f"memory://{key}?ttl={ttl_seconds}"

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)


class RacingQuotaService(QuotaService):
    """预检通过、条件更新失败：模拟并发上传抢先用掉了配额。"""

    def reserve(self, db: Session, *, user_id: int, delta: int, auto_commit: bool = True) -> None:
        raise QuotaExceeded()


@pytest.fixture()
def user(db_session_fixture: Session) -> User:
    user = User(email="files@example.com", hashed_password="x", is_active=True, storage_used=0, storage_limit=1000)
    db_session_fixture.add(user)
    db_session_fixture.commit()
    db_session_fixture.refresh(user)
    return user


def test_upload_and_download_with_injected_store(db_session_fixture: Session, user: User):
    store = MemoryObjectStore()
    service = FileService(store)

    record = service.upload_file(db_session_fixture, user, content=b"abc", original_name="a.txt")
    assert store.objects[record.storage_key] == b"abc"
    assert record.url == f"memory://{record.storage_key}"
    assert record.mime_type == "text/plain"
    db_session_fixture.refresh(user)
    assert user.storage_used == 3

    assert service.download_file(db_session_fixture, user, record.id) == {
        "url": f"memory://{record.storage_key}?ttl=300",
        "filename": "a.txt",
    }


def test_metadata_failure_removes_uploaded_object(db_session_fixture: Session, user: User, monkeypatch):
    store = MemoryObjectStore()
    service = FileService(store)

    def broken_create(*args, **kwargs):
        raise OperationalError("INSERT INTO files", {}, Exception("disk full"))

    monkeypatch.setattr(file_record_crud, "create", broken_create)
    with pytest.raises(UpstreamFailure):
        service.upload_file(db_session_fixture, user, content=b"abc", original_name="a.txt")

    assert store.objects == {}
    db_session_fixture.refresh(user)
    assert user.storage_used == 0


def test_lost_quota_race_removes_object_and_record(db_session_fixture: Session, user: User):
    store = MemoryObjectStore()
    service = FileService(store, quota=RacingQuotaService())

    with pytest.raises(QuotaExceeded):
        service.upload_file(db_session_fixture, user, content=b"abc", original_name="a.txt")

    assert store.objects == {}
    assert db_session_fixture.query(FileRecord).count() == 0
