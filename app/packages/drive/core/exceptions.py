"""异常处理模块：定义业务异常分类，并把异常统一渲染为 ``{success: false, error}``。"""

from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.packages.drive.core.constants import (
    HTTP_STATUS_BAD_GATEWAY,
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_UNPROCESSABLE_ENTITY,
)
from app.packages.drive.core.logger import logger
from app.packages.drive.core.responses import create_error_response


class AppException(HTTPException):
    """携带 HTTP 状态码的业务异常，由全局处理器转换为统一错误体。"""

    def __init__(self, msg: str, code: int = HTTP_STATUS_BAD_REQUEST) -> None:
        super().__init__(status_code=code, detail=msg)

    @property
    def message(self) -> str:
        return str(self.detail)


class NotFound(AppException):
    """资源不存在或不属于当前用户；两种情况返回同样的响应，避免泄露资源是否存在。"""

    def __init__(self, msg: str = "Resource not found") -> None:
        super().__init__(msg, HTTP_STATUS_NOT_FOUND)


class DuplicateName(AppException):
    def __init__(self, msg: str = "Folder with this name already exists") -> None:
        super().__init__(msg, HTTP_STATUS_BAD_REQUEST)


class NotEmpty(AppException):
    def __init__(self, msg: str = "Folder is not empty. Delete contents first.") -> None:
        super().__init__(msg, HTTP_STATUS_BAD_REQUEST)


class QuotaExceeded(AppException):
    def __init__(self, msg: str = "Storage limit exceeded") -> None:
        super().__init__(msg, HTTP_STATUS_BAD_REQUEST)


class InvalidInput(AppException):
    """缺失或格式错误的输入（含超出单文件上限的上传）。"""

    def __init__(self, msg: str) -> None:
        super().__init__(msg, HTTP_STATUS_BAD_REQUEST)


class UpstreamFailure(AppException):
    """对象存储或身份存储调用失败；不做重试，直接向调用方暴露。"""

    def __init__(self, msg: str = "Storage service unavailable", code: int = HTTP_STATUS_BAD_GATEWAY) -> None:
        super().__init__(msg, code)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 ``HTTPException``（含全部业务异常）转换为统一错误响应。"""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # pragma: no cover - framework glue
    """请求体/查询参数校验失败：返回首条错误信息，并在 details 中附带完整列表。"""

    def _serialize(obj: Any) -> Any:
        if isinstance(obj, Exception):
            return str(obj)
        if isinstance(obj, dict):
            return {key: _serialize(value) for key, value in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [_serialize(item) for item in obj]
        return obj

    errors = _serialize(exc.errors())
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", []) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else (first.get("msg") or "Invalid request")
    return JSONResponse(
        status_code=HTTP_STATUS_UNPROCESSABLE_ENTITY,
        content=create_error_response(message, details=errors),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：记录堆栈并返回 500。"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTP_STATUS_INTERNAL_SERVER_ERROR,
        content=create_error_response("Server Error"),
    )
