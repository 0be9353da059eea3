"""把增量文本折叠进一条进行中的助手消息。"""

from dataclasses import dataclass, replace
from typing import Callable, Optional
from uuid import uuid4

from mindaid_core.domain.models import ConversationLog, ConversationMessage


def new_assistant_message_id() -> str:
    return f"ai-{uuid4().hex}"


@dataclass(frozen=True)
class AccumulatorState:
    """累加器状态。

    - log: 当前会话快照。
    - in_progress_id: 正在接收增量的助手消息 ID；None 表示尚未开始或已结束。
    - message_id: 本次流分配过的消息 ID，finish 之后仍保留，便于调用方查找。
    - content: 到目前为止拼接的完整文本。
    """

    log: ConversationLog
    in_progress_id: Optional[str] = None
    message_id: Optional[str] = None
    content: str = ""

    @property
    def message(self) -> Optional[ConversationMessage]:
        if self.message_id is None:
            return None
        return self.log.get(self.message_id)


class MessageAccumulator:
    """纯函数式的累加器：apply/finish 都返回新的状态，不修改入参。

    ID 只在第一次收到非空片段时生成一次，同一个流内之后的所有更新都复用它；
    内容只做追加，不会整体重发。
    """

    def __init__(self, id_factory: Callable[[], str] = new_assistant_message_id):
        self._id_factory = id_factory

    def start(self, log: ConversationLog) -> AccumulatorState:
        return AccumulatorState(log=log)

    def apply(self, fragment: str, state: AccumulatorState) -> AccumulatorState:
        if not fragment:
            return state
        if state.in_progress_id is None:
            message_id = self._id_factory()
            message = ConversationMessage(id=message_id, role="assistant", content=fragment)
            return AccumulatorState(
                log=state.log.append(message),
                in_progress_id=message_id,
                message_id=message_id,
                content=fragment,
            )
        content = state.content + fragment
        message = state.log.get(state.in_progress_id).with_content(content)
        return replace(state, log=state.log.replace(message), content=content)

    def finish(self, state: AccumulatorState) -> AccumulatorState:
        """结束当前流：消息变为普通的已完成条目。"""

        if state.in_progress_id is None:
            return state
        return replace(state, in_progress_id=None)
