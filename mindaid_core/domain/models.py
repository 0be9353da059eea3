"""统一的对话与流式事件数据模型。

本模块定义了聊天核心在各组件之间共享的标准数据结构：

- ConversationMessage: 会话中的一条消息（user / assistant）。
- ConversationLog: 有序、不可变的消息快照，订阅者（UI）每次拿到的都是新对象。
- DecodedEvent: 单行流式数据的分类结果（skip / terminator / data）。
- ChatTurn: 发给对话服务的 {role, content} 请求项。

流式解析的每个阶段都只依赖这些模型，彼此之间不共享可变状态。
"""

from dataclasses import dataclass, field
from typing import Iterator, Literal, Optional, Tuple


# 会话消息角色（与对话服务请求体中的 role 字段一致）
Role = Literal["user", "assistant"]

# 欢迎语使用固定 ID，避免与服务端生成的消息 ID 冲突
WELCOME_MESSAGE_ID = "welcome"


@dataclass(frozen=True)
class ConversationMessage:
    """会话中的一条消息。

    - id: 消息标识。流式生成中的助手消息在第一次收到非空增量时分配，之后不变。
    - role: 消息角色。
    - content: 纯文本内容。
    """

    id: str
    role: Role
    content: str

    def with_content(self, content: str) -> "ConversationMessage":
        return ConversationMessage(id=self.id, role=self.role, content=content)

    def to_turn(self) -> "ChatTurn":
        return ChatTurn(role=self.role, content=self.content)


@dataclass(frozen=True)
class ChatTurn:
    """请求体中的一轮对话，只携带 role 与 content。"""

    role: Role
    content: str

    def to_payload(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ConversationLog:
    """有序的会话消息快照。

    所有修改操作都返回新的 ConversationLog，原对象保持不变，
    因此同一个快照重复交给订阅者是无副作用的。
    """

    messages: Tuple[ConversationMessage, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[ConversationMessage]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def __getitem__(self, index: int) -> ConversationMessage:
        return self.messages[index]

    def append(self, message: ConversationMessage) -> "ConversationLog":
        return ConversationLog(messages=self.messages + (message,))

    def replace(self, message: ConversationMessage) -> "ConversationLog":
        """按 id 原位替换消息；id 不存在时抛出 KeyError。"""

        for idx, existing in enumerate(self.messages):
            if existing.id == message.id:
                updated = self.messages[:idx] + (message,) + self.messages[idx + 1 :]
                return ConversationLog(messages=updated)
        raise KeyError(message.id)

    def get(self, message_id: str) -> Optional[ConversationMessage]:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def to_turns(self) -> list[ChatTurn]:
        return [m.to_turn() for m in self.messages]


EventKind = Literal["skip", "terminator", "data"]


@dataclass(frozen=True)
class DecodedEvent:
    """单行流式数据的解析结果。

    kind:
        - "skip": 注释行、空行或与协议无关的行，直接忽略。
        - "terminator": 结束哨兵，流在此处权威性结束。
        - "data": 数据帧，payload 为去掉前缀并 trim 后的 JSON 文本。
    """

    kind: EventKind
    payload: Optional[str] = None

    @classmethod
    def data(cls, payload: str) -> "DecodedEvent":
        return cls(kind="data", payload=payload)


SKIP = DecodedEvent(kind="skip")
TERMINATOR = DecodedEvent(kind="terminator")
