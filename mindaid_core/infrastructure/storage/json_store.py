import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List
from uuid import uuid4

from mindaid_core.config.settings import settings
from mindaid_core.domain.conversation import MessageStore, MessageRecord
from mindaid_core.domain.exceptions import BusinessError, ValidationError
from mindaid_core.domain.models import Role

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


class JsonMessageStore(MessageStore):
    """按会话追加写入 messages.jsonl 的本地消息存储。"""

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._sessions_root = self._root / "sessions"
        self._sessions_root.mkdir(parents=True, exist_ok=True)

    def append(self, session_id: str, role: Role, content: str) -> MessageRecord:
        sdir = self._session_dir(session_id)
        record = MessageRecord(
            id=f"m-{uuid4().hex}",
            session_id=session_id,
            role=role,
            content=content,
            created_at=datetime.now(timezone.utc),
        )
        payload = {
            "id": record.id,
            "session_id": record.session_id,
            "role": record.role,
            "content": record.content,
            "created_at": record.created_at.isoformat().replace("+00:00", "Z"),
        }
        try:
            sdir.mkdir(parents=True, exist_ok=True)
            with (sdir / "messages.jsonl").open("a", encoding="utf-8") as f:
                f.write(json.dumps(payload, ensure_ascii=False) + "\n")
        except OSError as e:
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))
        return record

    def list_messages(self, session_id: str) -> List[MessageRecord]:
        msgs_path = self._session_dir(session_id) / "messages.jsonl"
        items: List[MessageRecord] = []
        if not msgs_path.exists():
            return items
        try:
            lines = msgs_path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e))
        for line in lines:
            try:
                items.append(self._to_message(json.loads(line)))
            except (ValueError, KeyError):
                continue
        # sort 是稳定的，同一时刻写入的消息保持追加顺序
        items.sort(key=lambda m: m.created_at)
        return items

    def _session_dir(self, session_id: str) -> Path:
        if not session_id or not _SESSION_ID_RE.match(session_id):
            raise ValidationError(code="INVALID_SESSION_ID", message=repr(session_id))
        return self._sessions_root / session_id

    def _to_message(self, data: Dict[str, Any]) -> MessageRecord:
        role = data["role"]
        if role not in ("user", "assistant"):
            raise ValueError(f"unknown role {role!r}")
        return MessageRecord(
            id=data["id"],
            session_id=data["session_id"],
            role=role,
            content=data.get("content") or "",
            created_at=datetime.fromisoformat(str(data["created_at"]).replace("Z", "+00:00")),
        )
