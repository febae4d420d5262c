"""DriveClone 业务包：账号、文件夹树、文件与存储配额。"""

from app.packages.types import AppPackage

from .api.v1 import api_router
from .core.config import get_settings
from .core.exceptions import generic_exception_handler, http_exception_handler, validation_exception_handler
from .core.logger import logger, setup_logging
from .core.session import close_session_store
from .db.init_db import init_db
from .services.object_store import close_object_store, init_object_store


def startup() -> None:
    """建表并创建对象存储网关。"""
    init_db()
    init_object_store()


def shutdown() -> None:
    close_object_store()
    close_session_store()


package = AppPackage(
    name="drive",
    api_router=api_router,
    get_settings=get_settings,
    setup_logging=setup_logging,
    logger=logger,
    startup=startup,
    shutdown=shutdown,
    http_exception_handler=http_exception_handler,
    validation_exception_handler=validation_exception_handler,
    generic_exception_handler=generic_exception_handler,
)

__all__ = ["package", "api_router", "get_settings"]
