from dataclasses import dataclass
from datetime import datetime
from typing import List, Protocol

from .models import ConversationLog, Role


@dataclass
class MessageRecord:
    id: str
    session_id: str
    role: Role
    content: str
    created_at: datetime


class MessageStore(Protocol):
    def append(self, session_id: str, role: Role, content: str) -> MessageRecord:
        ...

    def list_messages(self, session_id: str) -> List[MessageRecord]:
        ...


class Notifier(Protocol):
    def notify_error(self, message: str) -> None:
        ...


class ConversationSubscriber(Protocol):
    """会话视图的订阅接口，每次收到的都是完整的不可变快照。"""

    def __call__(self, log: ConversationLog) -> None:
        ...
