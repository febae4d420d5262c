"""配额服务：维护每个用户的已用字节数。

``reserve``/``release`` 都下沉为单条条件 UPDATE，避免“先读后写”在并发上传时
把已用空间推过限额；``ensure_capacity`` 只读，用于在写对象存储之前尽早拒绝。
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.packages.drive.core.exceptions import InvalidInput, NotFound, QuotaExceeded
from app.packages.drive.core.logger import logger
from app.packages.drive.crud.users import user_crud
from app.packages.drive.models.user import User


class QuotaService:
    def _load(self, db: Session, user_id: int) -> User:
        user = user_crud.get(db, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def ensure_capacity(self, db: Session, *, user_id: int, delta: int) -> User:
        """按最新的计数预检，超出限额时抛出 QuotaExceeded，不做任何写入。"""
        user = self._load(db, user_id)
        db.refresh(user)
        if user.storage_used + delta > user.storage_limit:
            raise QuotaExceeded()
        return user

    def reserve(self, db: Session, *, user_id: int, delta: int, auto_commit: bool = True) -> None:
        if delta < 0:
            raise InvalidInput("Quota delta must be non-negative")
        if not user_crud.increment_storage_bounded(db, user_id=user_id, delta=delta):
            # 区分“用户不存在”与“超限”，两者都不写入
            self._load(db, user_id)
            raise QuotaExceeded()
        if auto_commit:
            db.commit()
        logger.debug("Reserved %s bytes for user %s", delta, user_id)

    def release(self, db: Session, *, user_id: int, delta: int, auto_commit: bool = True) -> None:
        if delta < 0:
            raise InvalidInput("Quota delta must be non-negative")
        user_crud.decrement_storage_floored(db, user_id=user_id, delta=delta)
        if auto_commit:
            db.commit()
        logger.debug("Released %s bytes for user %s", delta, user_id)


quota_service = QuotaService()
