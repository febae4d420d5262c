"""用户 CRUD：账号查询，以及配额计数的条件更新。"""

from datetime import datetime
from typing import Optional

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from app.packages.drive.crud.base import CRUDBase
from app.packages.drive.models.user import User


class CRUDUser(CRUDBase[User]):
    """封装常用的用户查询方法，供业务层复用。"""

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return self.query(db).filter(User.email == email.strip().lower()).first()

    def get_by_activation_token(self, db: Session, token_hash: str, *, now: datetime) -> Optional[User]:
        """按令牌摘要查找未过期的待激活用户；过期比较在数据库侧完成。"""
        return (
            self.query(db)
            .filter(User.activation_token == token_hash)
            .filter(User.activation_token_expire > now)
            .first()
        )

    def get_by_reset_token(self, db: Session, token_hash: str, *, now: datetime) -> Optional[User]:
        return (
            self.query(db)
            .filter(User.reset_password_token == token_hash)
            .filter(User.reset_password_expire > now)
            .first()
        )

    def increment_storage_bounded(self, db: Session, *, user_id: int, delta: int) -> bool:
        """原子地增加已用空间：仅当增加后不超过限额时才写入，返回是否成功。

        单条 ``UPDATE ... WHERE storage_used + :delta <= storage_limit``，
        并发上传不会同时通过检查。调用方负责提交事务。
        """
        result = db.execute(
            update(User)
            .where(User.id == user_id)
            .where(User.storage_used + delta <= User.storage_limit)
            .values(storage_used=User.storage_used + delta)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def decrement_storage_floored(self, db: Session, *, user_id: int, delta: int) -> None:
        """原子地减少已用空间，结果不低于 0。调用方负责提交事务。"""
        db.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                storage_used=case(
                    (User.storage_used > delta, User.storage_used - delta),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )


user_crud = CRUDUser(User)
