"""数据库初始化：启动时建表（幂等）。"""

import logging

from app.packages.drive.db import session as db_session
from app.packages.drive.models.base import Base
from app.packages.drive import models  # noqa: F401 - register tables on Base.metadata

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all database tables if they do not exist."""
    Base.metadata.create_all(bind=db_session.engine)
    logger.info("Database schema ready (%s tables)", len(Base.metadata.tables))
