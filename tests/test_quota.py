"""配额服务的单元测试：条件更新不会越过限额，释放不会低于 0。"""

import pytest
from sqlalchemy.orm import Session

from app.packages.drive.core.exceptions import NotFound, QuotaExceeded
from app.packages.drive.models.user import User
from app.packages.drive.services.quota_service import quota_service


@pytest.fixture()
def user(db_session_fixture: Session) -> User:
    user = User(
        email="quota@example.com",
        hashed_password="x",
        is_active=True,
        storage_used=0,
        storage_limit=100,
    )
    db_session_fixture.add(user)
    db_session_fixture.commit()
    db_session_fixture.refresh(user)
    return user


def _used(db: Session, user: User) -> int:
    db.refresh(user)
    return user.storage_used


def test_reserve_never_exceeds_limit(db_session_fixture: Session, user: User):
    quota_service.reserve(db_session_fixture, user_id=user.id, delta=60)
    with pytest.raises(QuotaExceeded):
        quota_service.reserve(db_session_fixture, user_id=user.id, delta=41)
    db_session_fixture.rollback()
    assert _used(db_session_fixture, user) == 60

    quota_service.reserve(db_session_fixture, user_id=user.id, delta=40)
    assert _used(db_session_fixture, user) == 100
    with pytest.raises(QuotaExceeded):
        quota_service.reserve(db_session_fixture, user_id=user.id, delta=1)


def test_ensure_capacity_reads_current_total(db_session_fixture: Session, user: User):
    quota_service.reserve(db_session_fixture, user_id=user.id, delta=90)

    assert quota_service.ensure_capacity(db_session_fixture, user_id=user.id, delta=10).id == user.id
    with pytest.raises(QuotaExceeded):
        quota_service.ensure_capacity(db_session_fixture, user_id=user.id, delta=11)


def test_release_is_floored_at_zero(db_session_fixture: Session, user: User):
    quota_service.reserve(db_session_fixture, user_id=user.id, delta=30)

    quota_service.release(db_session_fixture, user_id=user.id, delta=10)
    assert _used(db_session_fixture, user) == 20
    quota_service.release(db_session_fixture, user_id=user.id, delta=500)
    assert _used(db_session_fixture, user) == 0


def test_reserve_for_unknown_user(db_session_fixture: Session):
    with pytest.raises(NotFound):
        quota_service.reserve(db_session_fixture, user_id=999_999, delta=1)
