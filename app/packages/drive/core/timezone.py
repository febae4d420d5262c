"""时间工具：统一取当前时间，并把数据库读出的时间序列化为带时区的 ISO 字符串。"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from zoneinfo import ZoneInfo

from app.packages.drive.core.config import get_settings


def get_timezone() -> ZoneInfo:
    return get_settings().timezone_info


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_local(value: Optional[datetime]) -> Optional[datetime]:
    """转换到配置时区；SQLite 读出的无时区时间按 UTC 解释。"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(get_timezone())


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    localized = to_local(value)
    if localized is None:
        return None
    return localized.isoformat()
