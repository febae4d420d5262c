"""对象存储网关：统一封装 S3 与本地文件系统的 put / 签名下载 / delete。

网关实例是进程级单例：应用启动时 ``init_object_store()`` 创建，关闭时
``close_object_store()`` 释放，请求内通过依赖 ``get_object_store`` 注入服务层。
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.packages.drive.core.config import Settings, get_settings
from app.packages.drive.core.constants import (
    DEFAULT_MIME_TYPE,
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_NOT_FOUND,
    SIGNED_DOWNLOAD_PURPOSE,
)
from app.packages.drive.core.exceptions import AppException, InvalidInput, UpstreamFailure
from app.packages.drive.core.logger import logger
from app.packages.drive.core.security import create_temporary_token, decode_and_verify_token


def guess_mime(name: str) -> str:
    mime, _ = mimetypes.guess_type(name)
    return mime or DEFAULT_MIME_TYPE


class ObjectStore:
    """对象存储接口。"""

    def put(self, key: str, data: bytes, *, content_type: Optional[str] = None, metadata: Optional[dict] = None) -> str:
        """写入对象并返回其定位地址（locator）。"""
        raise NotImplementedError

    def signed_get_url(self, key: str, ttl_seconds: int, *, filename: Optional[str] = None) -> str:
        """生成限时、无需凭证的下载地址。"""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


# ------------------------------------------
# 本地文件系统实现
# ------------------------------------------


@dataclass
class SignedObject:
    path: Path
    filename: str
    media_type: str


class LocalObjectStore(ObjectStore):
    """把对象写入本地目录；签名链接由服务端短期 JWT 实现，经 ``/files/signed`` 读取。"""

    def __init__(self, root: str | Path, *, public_base_url: str, api_prefix: str):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self.api_prefix = api_prefix.rstrip("/")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise UpstreamFailure(f"Cannot create local storage root: {exc}") from exc

    # 统一的安全路径拼接，防止路径遍历
    def _resolve(self, key: str) -> Path:
        candidate = (self.root / key.lstrip("/")).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError as exc:
            raise InvalidInput("Illegal object key") from exc
        return candidate

    def put(self, key: str, data: bytes, *, content_type: Optional[str] = None, metadata: Optional[dict] = None) -> str:
        target = self._resolve(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as f:
                f.write(data)
        except OSError as exc:
            logger.exception("Local put failed for %s", key)
            raise UpstreamFailure("Failed to store file") from exc
        return f"local://{key}"

    def signed_get_url(self, key: str, ttl_seconds: int, *, filename: Optional[str] = None) -> str:
        token = create_temporary_token(
            {"purpose": SIGNED_DOWNLOAD_PURPOSE, "key": key, "filename": filename},
            expires_seconds=ttl_seconds,
        )
        return f"{self.public_base_url}{self.api_prefix}/files/signed?t={token}"

    def delete(self, key: str) -> None:
        target = self._resolve(key)
        try:
            # 幂等：对象已不存在时视为删除成功
            target.unlink(missing_ok=True)
        except OSError as exc:
            logger.exception("Local delete failed for %s", key)
            raise UpstreamFailure("Failed to delete file from storage") from exc

    def open_signed(self, token: str) -> SignedObject:
        """校验签名令牌并返回对应对象；过期或伪造的令牌一律 400。"""
        payload = decode_and_verify_token(token)
        if not payload or payload.get("purpose") != SIGNED_DOWNLOAD_PURPOSE or not payload.get("key"):
            raise AppException("Invalid or expired download link", HTTP_STATUS_BAD_REQUEST)
        target = self._resolve(payload["key"])
        if not target.is_file():
            raise AppException("File not found", HTTP_STATUS_NOT_FOUND)
        filename = payload.get("filename") or target.name
        return SignedObject(path=target, filename=filename, media_type=guess_mime(filename))


# ------------------------------------------
# S3 实现（boto3）
# ------------------------------------------


class S3ObjectStore(ObjectStore):
    def __init__(
        self,
        *,
        bucket: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        prefix: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self.prefix = (prefix or "").strip("/")
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
            config=Config(signature_version="s3v4"),
        )

    # 拼接基于 path_prefix 的对象 key
    def _join_key(self, key: str) -> str:
        key = key.lstrip("/")
        return f"{self.prefix}/{key}" if self.prefix else key

    def _location(self, full_key: str) -> str:
        quoted = quote(full_key)
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"

    def put(self, key: str, data: bytes, *, content_type: Optional[str] = None, metadata: Optional[dict] = None) -> str:
        full_key = self._join_key(key)
        params = {
            "Bucket": self.bucket,
            "Key": full_key,
            "Body": data,
            "ContentType": content_type or DEFAULT_MIME_TYPE,
        }
        if metadata:
            params["Metadata"] = {str(k): str(v) for k, v in metadata.items()}
        try:
            self._client.put_object(**params)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 upload failed for %s", full_key)
            raise UpstreamFailure("Failed to store file") from exc
        return self._location(full_key)

    def signed_get_url(self, key: str, ttl_seconds: int, *, filename: Optional[str] = None) -> str:
        params = {"Bucket": self.bucket, "Key": self._join_key(key)}
        if filename:
            params["ResponseContentDisposition"] = f"attachment; filename=\"{filename}\""
        try:
            return self._client.generate_presigned_url("get_object", Params=params, ExpiresIn=ttl_seconds)
        except (BotoCoreError, ClientError) as exc:
            raise UpstreamFailure("Failed to generate download link") from exc

    def delete(self, key: str) -> None:
        full_key = self._join_key(key)
        try:
            self._client.delete_object(Bucket=self.bucket, Key=full_key)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 delete failed for %s", full_key)
            raise UpstreamFailure("Failed to delete file from storage") from exc

    def close(self) -> None:
        self._client.close()


def build_object_store(settings: Settings) -> ObjectStore:
    backend = (settings.storage_backend or "").upper()
    if backend == "LOCAL":
        return LocalObjectStore(
            settings.local_storage_path,
            public_base_url=settings.public_base_url,
            api_prefix=settings.api_prefix,
        )
    if backend == "S3":
        if not settings.s3_bucket_name:
            raise RuntimeError("S3 object store requires AWS_BUCKET_NAME")
        return S3ObjectStore(
            bucket=settings.s3_bucket_name,
            region=settings.s3_region,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
            prefix=settings.s3_path_prefix,
        )
    raise RuntimeError(f"Unsupported STORAGE_BACKEND: {settings.storage_backend!r}")


_store: Optional[ObjectStore] = None


def init_object_store() -> ObjectStore:
    global _store
    if _store is None:
        settings = get_settings()
        _store = build_object_store(settings)
        logger.info("Object store initialized (%s)", settings.storage_backend.upper())
    return _store


def get_object_store() -> ObjectStore:
    """FastAPI 依赖：返回启动时创建的对象存储网关。"""
    if _store is None:
        raise UpstreamFailure("Object store not initialized")
    return _store


def close_object_store() -> None:
    global _store
    if _store is not None:
        _store.close()
        _store = None
