"""测试用的假协作者。"""

import json
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from mindaid_core.domain.conversation import MessageRecord


def frame(text: str) -> str:
    payload = {"choices": [{"index": 0, "delta": {"content": text}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


DONE = "data: [DONE]\n\n"


def as_bytes(chunks: Sequence) -> List[bytes]:
    return [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]


class FakeStream:
    def __init__(self, chunks, error: Optional[Exception] = None):
        self._chunks = as_bytes(chunks)
        self._error = error
        self.consumed = 0
        self.closed = False

    def iter_bytes(self):
        for chunk in self._chunks:
            self.consumed += 1
            yield chunk
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


class FakeTransport:
    name = "fake"

    def __init__(self, chunks=(), error: Optional[Exception] = None, open_error: Optional[Exception] = None):
        self._chunks = chunks
        self._error = error
        self._open_error = open_error
        self.turns = None
        self.opened = 0
        self.stream: Optional[FakeStream] = None

    @contextmanager
    def open_stream(self, turns):
        self.opened += 1
        self.turns = list(turns)
        if self._open_error is not None:
            raise self._open_error
        self.stream = FakeStream(self._chunks, self._error)
        try:
            yield self.stream
        finally:
            self.stream.close()


class FakeStore:
    def __init__(self):
        self.appended = []

    def append(self, session_id, role, content):
        self.appended.append((session_id, role, content))
        return MessageRecord(
            id=f"m{len(self.appended)}",
            session_id=session_id,
            role=role,
            content=content,
            created_at=datetime.now(timezone.utc),
        )

    def list_messages(self, session_id):
        return [
            MessageRecord(id=f"m{i}", session_id=s, role=r, content=c, created_at=datetime.now(timezone.utc))
            for i, (s, r, c) in enumerate(self.appended, start=1)
            if s == session_id
        ]


class FakeNotifier:
    def __init__(self):
        self.messages = []

    def notify_error(self, message):
        self.messages.append(message)


class Recorder:
    """收集订阅者收到的每一个会话快照。"""

    def __init__(self):
        self.logs = []

    def __call__(self, log):
        self.logs.append(log)
