"""聊天 Agent。

管理一个匿名会话的对话状态：加载历史、发送用户消息、驱动流式回复。
流式解析本身由 StreamConsumer 完成，这里只负责一次提交前后的编排。
"""

import logging
import threading
from typing import Any, Dict, Optional
from uuid import uuid4

from mindaid_core.config.settings import settings
from mindaid_core.domain.conversation import ConversationSubscriber, MessageStore, Notifier
from mindaid_core.domain.exceptions import ValidationError
from mindaid_core.domain.models import WELCOME_MESSAGE_ID, ConversationLog, ConversationMessage
from mindaid_core.infrastructure.logging.logger import logger
from mindaid_core.providers.base import ChatTransport
from mindaid_core.streaming.cancel import CancelToken
from mindaid_core.streaming.consumer import StreamConsumer, StreamResult


class ChatAgent:
    """单个会话的聊天编排器。

    同一时间只允许一个进行中的流；上一次 send 返回之前再次调用会抛出
    ValidationError(code="STREAM_ACTIVE")。
    """

    def __init__(
        self,
        store: MessageStore,
        transport: ChatTransport,
        notifier: Notifier,
        session_id: str,
        welcome_message: Optional[str] = None,
    ):
        """初始化聊天 Agent。

        Args:
            store: 消息存储实例
            transport: 对话服务传输实例
            notifier: 错误通知实例
            session_id: 匿名会话 ID
            welcome_message: 没有历史记录时展示的欢迎语，默认取配置
        """
        self._store = store
        self._transport = transport
        self._notifier = notifier
        self._session_id = session_id
        self._welcome_message = welcome_message or settings.welcome_message
        self._log = ConversationLog()
        self._lock = threading.Lock()
        self._streaming = False

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def log(self) -> ConversationLog:
        return self._log

    @property
    def is_streaming(self) -> bool:
        return self._streaming

    def load_history(self) -> ConversationLog:
        """从存储加载会话历史；没有任何记录时返回只含欢迎语的会话。"""

        records = self._store.list_messages(self._session_id)
        if records:
            log = ConversationLog(
                messages=tuple(
                    ConversationMessage(id=r.id, role=r.role, content=r.content) for r in records
                )
            )
        else:
            welcome = ConversationMessage(id=WELCOME_MESSAGE_ID, role="assistant", content=self._welcome_message)
            log = ConversationLog(messages=(welcome,))
        self._log = log
        self._write_log(logging.INFO, "Loaded chat history", message_count=len(records))
        return log

    def send(
        self,
        user_input: str,
        subscriber: Optional[ConversationSubscriber] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> StreamResult:
        """发送一条用户消息并消费助手的流式回复。

        步骤：
        1. 校验输入，把用户消息追加到会话并通知订阅者。
        2. 持久化用户消息（在请求发出之前）。
        3. 用完整会话历史发起流式请求，由 StreamConsumer 消费。
        4. 以返回的快照作为新的会话状态。
        """

        text = (user_input or "").strip()
        if not text:
            raise ValidationError(code="EMPTY_INPUT", message="Message must not be empty")
        with self._lock:
            if self._streaming:
                raise ValidationError(code="STREAM_ACTIVE", message="A response is still streaming")
            self._streaming = True

        try:
            user_msg = ConversationMessage(id=f"temp-{uuid4().hex}", role="user", content=text)
            log = self._log.append(user_msg)
            self._log = log
            if subscriber is not None:
                subscriber(log)

            self._store.append(self._session_id, "user", text)

            consumer = StreamConsumer(
                transport=self._transport,
                store=self._store,
                notifier=self._notifier,
                session_id=self._session_id,
                subscriber=subscriber,
                cancel_token=cancel_token,
            )
            result = consumer.run(log)
            self._log = result.log
            self._write_log(
                logging.INFO,
                "Chat turn finished",
                state=result.state.value,
                message_count=len(result.log),
            )
            return result
        finally:
            with self._lock:
                self._streaming = False

    def _write_log(self, level: int, message: str, **fields: Any) -> None:
        payload: Dict[str, Any] = {"session_id": self._session_id}
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
