"""匿名会话 ID 管理。

应用不做登录，聊天记录按匿名会话 ID 归档：首次使用时生成一个 ID 并写入
storage_root 下的文件，之后每次启动都复用它，直到用户主动清除。
"""

import os
import secrets
import string
import time
from pathlib import Path
from typing import Optional
from uuid import uuid4

from mindaid_core.config.settings import settings
from mindaid_core.domain.exceptions import BusinessError

_ALPHABET = string.ascii_lowercase + string.digits


def new_session_id() -> str:
    """生成形如 session_<毫秒时间戳>_<9 位随机串> 的会话 ID。"""

    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


class SessionManager:
    def __init__(self, root: str | Path | None = None, filename: Optional[str] = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._path = self._root / (filename or settings.session_file)
        self._cached: Optional[str] = None

    @property
    def path(self) -> Path:
        return self._path

    def get_session_id(self) -> str:
        """读取已保存的会话 ID，不存在时生成并保存。"""

        if self._cached:
            return self._cached
        session_id = self._read()
        if not session_id:
            session_id = new_session_id()
            self._write(session_id)
        self._cached = session_id
        return session_id

    def clear_session(self) -> None:
        self._cached = None
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise BusinessError(code="SESSION_CLEAR_ERROR", message=str(e))

    def _read(self) -> Optional[str]:
        if not self._path.exists():
            return None
        try:
            value = self._path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise BusinessError(code="SESSION_READ_ERROR", message=str(e))
        return value or None

    def _write(self, session_id: str) -> None:
        tmp_path = self._path.with_name(f"{self._path.name}.{uuid4().hex}.tmp")
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(session_id, encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise BusinessError(code="SESSION_WRITE_ERROR", message=str(e))
