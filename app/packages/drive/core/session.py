"""会话管理：使用 Redis 或内存后端实现滑动过期的登录会话。"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import redis

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.logger import logger


class SessionBackend:
    """会话后端基类，定义滑动过期操作的接口。"""

    def create_session(self, user_id: int, ttl_seconds: int) -> str:  # pragma: no cover - interface definition
        raise NotImplementedError

    def touch_session(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:  # pragma: no cover
        raise NotImplementedError

    def delete_session(self, session_id: str) -> None:  # pragma: no cover
        raise NotImplementedError

    def delete_user_sessions(self, user_id: int) -> None:  # pragma: no cover
        raise NotImplementedError

    def close(self) -> None:
        pass


class RedisSessionBackend(SessionBackend):
    """基于 Redis 的会话后端，键形如 ``driveclone:session:<sid>``；
    每个用户的会话 ID 另存于集合 ``driveclone:user-sessions:<user_id>``，用于整体吊销。
    """

    KEY_PREFIX = "driveclone:session:"
    USER_KEY_PREFIX = "driveclone:user-sessions:"

    def __init__(self, url: str) -> None:
        self._client = redis.Redis.from_url(url, decode_responses=True)
        self._client.ping()

    def create_session(self, user_id: int, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        user_key = self.USER_KEY_PREFIX + str(user_id)
        pipe = self._client.pipeline()
        pipe.set(self.KEY_PREFIX + session_id, str(user_id), ex=ttl_seconds)
        pipe.sadd(user_key, session_id)
        pipe.expire(user_key, ttl_seconds)
        pipe.execute()
        return session_id

    def touch_session(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:
        key = self.KEY_PREFIX + session_id
        if self._client.get(key) != str(user_id):
            return False
        self._client.expire(key, ttl_seconds)
        self._client.expire(self.USER_KEY_PREFIX + str(user_id), ttl_seconds)
        return True

    def delete_session(self, session_id: str) -> None:
        key = self.KEY_PREFIX + session_id
        user_id = self._client.get(key)
        self._client.delete(key)
        if user_id is not None:
            self._client.srem(self.USER_KEY_PREFIX + user_id, session_id)

    def delete_user_sessions(self, user_id: int) -> None:
        user_key = self.USER_KEY_PREFIX + str(user_id)
        session_ids = self._client.smembers(user_key)
        keys = [self.KEY_PREFIX + sid for sid in session_ids]
        self._client.delete(user_key, *keys)

    def close(self) -> None:
        self._client.close()


class InMemorySessionBackend(SessionBackend):
    """内存后端用于测试、单进程部署或 Redis 不可用时的回退。"""

    def __init__(self) -> None:
        self._store: dict[str, tuple[int, datetime]] = {}
        self._lock = threading.Lock()

    def create_session(self, user_id: int, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._store[session_id] = (user_id, self._expiry(ttl_seconds))
        return session_id

    def touch_session(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:
        with self._lock:
            record = self._store.get(session_id)
            if record is None:
                return False
            stored_user_id, current_expiry = record
            if stored_user_id != user_id or current_expiry < datetime.now(timezone.utc):
                self._store.pop(session_id, None)
                return False
            self._store[session_id] = (stored_user_id, self._expiry(ttl_seconds))
            return True

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            self._store.pop(session_id, None)

    def delete_user_sessions(self, user_id: int) -> None:
        with self._lock:
            for session_id in [sid for sid, (owner, _) in self._store.items() if owner == user_id]:
                del self._store[session_id]

    @staticmethod
    def _expiry(ttl_seconds: int) -> datetime:
        return datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)


_backend: Optional[SessionBackend] = None


def _get_backend() -> SessionBackend:
    global _backend
    if _backend is not None:
        return _backend

    settings = get_settings()
    if settings.session_backend.lower() == "memory":
        _backend = InMemorySessionBackend()
        return _backend
    try:
        _backend = RedisSessionBackend(settings.redis_url)
        logger.info("Session store initialized with Redis at %s", settings.redis_url)
    except redis.RedisError as exc:  # pragma: no cover - fallback path
        logger.warning("Redis unavailable (%s), falling back to in-memory session store", exc)
        _backend = InMemorySessionBackend()
    return _backend


def create_session(user_id: int, ttl_seconds: int) -> str:
    return _get_backend().create_session(user_id, ttl_seconds)


def touch_session(session_id: str, user_id: int, ttl_seconds: int) -> bool:
    """刷新会话 TTL，若会话不存在或用户不匹配则返回 ``False``。"""
    return _get_backend().touch_session(session_id, user_id, ttl_seconds)


def delete_session(session_id: str) -> None:
    _get_backend().delete_session(session_id)


def delete_user_sessions(user_id: int) -> None:
    """吊销某个用户的全部会话（例如重置密码后）。"""
    _get_backend().delete_user_sessions(user_id)


def close_session_store() -> None:
    """应用关闭时释放会话后端持有的连接。"""
    global _backend
    if _backend is not None:
        _backend.close()
        _backend = None
