"""CRUD 基类：为各实体提供通用的数据访问方法。"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from app.packages.drive.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """封装常见的查询、创建与删除逻辑，减少重复代码。"""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def query(self, db: Session) -> Query:
        return db.query(self.model)

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return self.query(db).filter(self.model.id == id).first()

    def create(self, db: Session, obj_in: Dict[str, Any], *, auto_commit: bool = True) -> ModelType:
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        if auto_commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()
        return db_obj

    def save(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> ModelType:
        db.add(db_obj)
        if auto_commit:
            db.commit()
            db.refresh(db_obj)
        return db_obj

    def hard_delete(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> None:
        """物理删除行；失败时回滚并继续抛出。"""
        db.delete(db_obj)
        if auto_commit:
            try:
                db.commit()
            except Exception:
                db.rollback()
                raise


class OwnedCRUDBase(CRUDBase[ModelType]):
    """按 ``user_id`` 隔离的实体：所有查询都必须带上当前用户。"""

    def owned_query(self, db: Session, *, user_id: int) -> Query:
        return self.query(db).filter(self.model.user_id == user_id)

    def get_owned(self, db: Session, id: Any, *, user_id: int) -> Optional[ModelType]:
        """按 ID 获取属于该用户的记录；不属于该用户时与不存在同样返回 ``None``。"""
        return self.owned_query(db, user_id=user_id).filter(self.model.id == id).first()

    def list_children(self, db: Session, *, user_id: int, parent_folder_id: Optional[int]) -> List[ModelType]:
        """列出某目录（``None`` 为根目录）下的直接子项，按创建时间倒序。"""
        query = self.owned_query(db, user_id=user_id)
        if parent_folder_id is None:
            query = query.filter(self.model.parent_folder_id.is_(None))
        else:
            query = query.filter(self.model.parent_folder_id == parent_folder_id)
        return query.order_by(self.model.create_time.desc(), self.model.id.desc()).all()

    def count_in_folder(self, db: Session, *, folder_id: int) -> int:
        """统计直接位于该目录下的记录数（不区分用户，避免遗漏任何子项）。"""
        return self.query(db).filter(self.model.parent_folder_id == folder_id).count()
