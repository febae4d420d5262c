"""响应封装：构建系统统一的返回结构。"""

from typing import Any


def create_response(data: Any = None, **extra: Any) -> dict[str, Any]:
    """组合成功响应 ``{success: true, data, ...}``。

    ``extra`` 用于列表的 ``count``、下载的 ``url``/``filename`` 等附加字段；
    显式传入 ``data=None`` 且没有附加字段时仍保留 ``data`` 键。
    """
    payload: dict[str, Any] = {"success": True}
    if data is not None or not extra:
        payload["data"] = data
    payload.update(extra)
    return payload


def create_list_response(items: list[Any]) -> dict[str, Any]:
    return create_response(items, count=len(items))


def create_error_response(error: str, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": False, "error": error}
    payload.update(extra)
    return payload
