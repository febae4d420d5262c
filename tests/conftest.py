"""测试夹具：为 pytest 提供数据库、对象存储、发信器与客户端的共享配置。

环境变量必须在导入应用之前写入，配置对象会在首次导入时缓存。
"""

import os
import re
import shutil
import tempfile
import uuid
from typing import Callable, Dict, Generator, List, Optional

TEST_ROOT = tempfile.mkdtemp(prefix="driveclone-tests-")
TEST_DB_PATH = os.path.join(TEST_ROOT, "test.db")

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SESSION_BACKEND"] = "memory"
os.environ["STORAGE_BACKEND"] = "LOCAL"
os.environ["LOCAL_STORAGE_ROOT"] = os.path.join(TEST_ROOT, "objects")
os.environ["LOG_DIR"] = os.path.join(TEST_ROOT, "log")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["JWT_SECRET_KEY"] = "test-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.main import app  # noqa: E402
from app.packages.drive.core.dependencies import get_db  # noqa: E402
from app.packages.drive.db import session as db_session  # noqa: E402
from app.packages.drive.models import FileRecord, Folder, User  # noqa: E402
from app.packages.drive.models.base import Base  # noqa: E402
from app.packages.drive.services.mail_service import Mailer, get_mailer  # noqa: E402

DEFAULT_PASSWORD = "secret123"


class RecordingMailer(Mailer):
    """不连接 SMTP，只记录发出的邮件；``succeed=False`` 时模拟发送失败。"""

    def __init__(self) -> None:
        super().__init__()
        self.sent: List[Dict[str, str]] = []
        self.succeed = True

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
        self.sent.append({"to": to, "subject": subject, "text": text})
        return self.succeed

    def last_token(self, to: str, route: str) -> str:
        for mail in reversed(self.sent):
            if mail["to"] == to:
                match = re.search(rf"/{route}/([0-9a-f]+)", mail["text"])
                if match:
                    return match.group(1)
        raise AssertionError(f"no {route} mail sent to {to}")


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理。"""
    Base.metadata.create_all(bind=db_session.engine)
    yield
    db_session.engine.dispose()
    shutil.rmtree(TEST_ROOT, ignore_errors=True)


@pytest.fixture(autouse=True)
def clean_tables() -> Generator[None, None, None]:
    yield
    session = db_session.SessionLocal()
    try:
        for model in (FileRecord, Folder, User):
            session.query(model).delete()
        session.commit()
    finally:
        session.close()
    shutil.rmtree(os.environ["LOCAL_STORAGE_ROOT"], ignore_errors=True)


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def client(mailer: RecordingMailer) -> Generator[TestClient, None, None]:
    """构建 FastAPI TestClient，并注入测试专用的数据库与发信器依赖。"""

    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def create_user(client: TestClient, mailer: RecordingMailer, db_session_fixture: Session) -> Callable[..., dict]:
    """注册 → 激活 → 登录，返回 ``{id, email, headers}``；可选地调整存储限额。"""

    def _create(email: Optional[str] = None, *, storage_limit: Optional[int] = None) -> dict:
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        response = client.post(
            "/api/auth/register",
            json={"email": email, "firstName": "Test", "lastName": "User", "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 201, response.text
        token = mailer.last_token(email, "activate")
        assert client.get(f"/api/auth/activate/{token}").status_code == 200

        if storage_limit is not None:
            db_session_fixture.query(User).filter(User.email == email).update({"storage_limit": storage_limit})
            db_session_fixture.commit()

        login = client.post("/api/auth/login", json={"email": email, "password": DEFAULT_PASSWORD})
        assert login.status_code == 200, login.text
        body = login.json()
        return {
            "id": body["user"]["id"],
            "email": email,
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _create
