"""业务包注册中心：集中管理项目中可用的业务模块。"""

from __future__ import annotations

import os
from typing import Dict

from . import drive
from .types import AppPackage

PACKAGE_REGISTRY: Dict[str, AppPackage] = {
    drive.package.name: drive.package,
}


def get_active_package() -> AppPackage:
    """根据 ``APP_ACTIVE_PACKAGE`` 环境变量选择当前启用的业务包。"""
    package_name = os.getenv("APP_ACTIVE_PACKAGE", drive.package.name)
    try:
        return PACKAGE_REGISTRY[package_name]
    except KeyError as exc:
        available = ", ".join(PACKAGE_REGISTRY)
        raise RuntimeError(f"Unknown package '{package_name}', available: {available}") from exc


__all__ = ["drive", "PACKAGE_REGISTRY", "get_active_package"]
