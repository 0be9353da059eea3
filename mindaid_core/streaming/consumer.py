"""流式响应消费者（编排层）。

负责一次聊天提交的完整流式生命周期：

    IDLE -> STREAMING -> COMPLETED | FAILED | CANCELLED

1. 通过 ChatTransport 发起请求（IDLE -> STREAMING）。
2. 逐块读取字节，依次经过 FrameSplitter -> EventDecoder -> DeltaExtractor
   -> MessageAccumulator，每次累加器状态变化都把新的会话快照推给订阅者。
3. 收到结束哨兵立即结束，剩余字节直接丢弃；连接自然关闭同样视为完成。
4. 完成且内容非空时，调用一次 MessageStore.append 持久化助手消息。
5. 传输层错误转为 FAILED，只通知用户一次，已渲染的内容保留在返回的快照中。

取消不是错误：取消之后不再回调订阅者、不再持久化、也不发送错误通知。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4
import logging

from mindaid_core.config.settings import settings
from mindaid_core.domain.conversation import ConversationSubscriber, MessageStore, Notifier
from mindaid_core.domain.exceptions import (
    BusinessError,
    FrameDecodeError,
    PrematureEndError,
    TransportError,
    ValidationError,
)
from mindaid_core.domain.models import ChatTurn, ConversationLog, ConversationMessage
from mindaid_core.infrastructure.logging.logger import logger
from mindaid_core.providers.base import ChatTransport
from mindaid_core.streaming.accumulator import AccumulatorState, MessageAccumulator
from mindaid_core.streaming.cancel import CancelToken
from mindaid_core.streaming.delta_extractor import DeltaExtractor
from mindaid_core.streaming.event_decoder import EventDecoder
from mindaid_core.streaming.frame_splitter import FrameSplitter


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class StreamResult:
    """一次流式调用的最终结果。

    - state: 终止状态（COMPLETED / FAILED / CANCELLED）。
    - log: 结束时的会话快照；失败时仍包含已渲染的部分内容。
    - message: 本次生成的助手消息，没有收到任何非空片段时为 None。
    - terminated: 是否由结束哨兵终止。
    - premature_end: 连接在没有结束哨兵的情况下关闭且已有内容。
    - error: FAILED 时的传输层异常。
    - warning: 软错误（例如 PrematureEndError），不会通知用户。
    """

    state: StreamState
    log: ConversationLog
    message: Optional[ConversationMessage] = None
    terminated: bool = False
    premature_end: bool = False
    error: Optional[BusinessError] = None
    warning: Optional[BusinessError] = None


class StreamConsumer:
    """单次使用的流式消费者，每次提交创建一个新实例。"""

    def __init__(
        self,
        transport: ChatTransport,
        store: MessageStore,
        notifier: Notifier,
        session_id: str,
        subscriber: Optional[ConversationSubscriber] = None,
        cancel_token: Optional[CancelToken] = None,
        accumulator: Optional[MessageAccumulator] = None,
        decoder: Optional[EventDecoder] = None,
        extractor: Optional[DeltaExtractor] = None,
        error_message: Optional[str] = None,
    ):
        self._transport = transport
        self._store = store
        self._notifier = notifier
        self._session_id = session_id
        self._subscriber = subscriber
        self._cancel = cancel_token or CancelToken()
        self._accumulator = accumulator or MessageAccumulator()
        self._decoder = decoder or EventDecoder()
        self._extractor = extractor or DeltaExtractor()
        self._error_message = error_message or settings.stream_error_message
        self.state = StreamState.IDLE

    def run(self, log: ConversationLog, turns: Optional[List[ChatTurn]] = None) -> StreamResult:
        """发起请求并消费整个流。

        Args:
            log: 发起请求时的会话快照（通常已包含刚发送的用户消息）。
            turns: 请求体中的历史；为空时使用 log 中的全部消息。
        """

        if self.state is not StreamState.IDLE:
            raise ValidationError(code="CONSUMER_USED", message="StreamConsumer can only run once")

        log_ctx: Dict[str, Any] = {
            "trace_id": f"st-{uuid4().hex}",
            "session_id": self._session_id,
            "transport": getattr(self._transport, "name", "unknown"),
        }
        state = self._accumulator.start(log)
        if self._cancel.cancelled:
            return self._cancelled(state, log_ctx)

        request_turns = turns if turns is not None else log.to_turns()
        splitter = FrameSplitter()
        terminated = False

        self.state = StreamState.STREAMING
        self._log(logging.INFO, "Dispatching chat stream", log_ctx, message_count=len(request_turns))
        try:
            with self._transport.open_stream(request_turns) as stream:
                self._cancel.on_cancel(stream.close)
                try:
                    for chunk in stream.iter_bytes():
                        if self._cancel.cancelled:
                            break
                        for line in splitter.feed(chunk):
                            event = self._decoder.classify(line)
                            if event.kind == "terminator":
                                terminated = True
                                break
                            if event.kind == "data":
                                state = self._apply_payload(event.payload or "", state, log_ctx)
                        if terminated:
                            break
                    else:
                        splitter.flush()
                finally:
                    self._cancel.remove(stream.close)
        except TransportError as e:
            return self._fail(e, state, log_ctx)
        except Exception:
            self.state = StreamState.FAILED
            logger.exception("Unexpected error while consuming chat stream", extra={"extra": log_ctx})
            raise

        state = self._accumulator.finish(state)
        if self._cancel.cancelled:
            return self._cancelled(state, log_ctx)
        return self._complete(state, terminated, splitter, log_ctx)

    def _apply_payload(
        self,
        payload: str,
        state: AccumulatorState,
        log_ctx: Dict[str, Any],
    ) -> AccumulatorState:
        try:
            fragment = self._extractor.extract(payload)
        except FrameDecodeError as e:
            # 单个坏帧不影响整个流
            self._log(logging.WARNING, "Skipped malformed frame", log_ctx, code=e.code, error=e.message)
            return state
        new_state = self._accumulator.apply(fragment, state)
        if new_state is not state:
            self._emit(new_state.log)
        return new_state

    def _emit(self, log: ConversationLog) -> None:
        if self._cancel.cancelled or self._subscriber is None:
            return
        self._subscriber(log)

    def _complete(
        self,
        state: AccumulatorState,
        terminated: bool,
        splitter: FrameSplitter,
        log_ctx: Dict[str, Any],
    ) -> StreamResult:
        warning: Optional[BusinessError] = None
        premature = not terminated and bool(state.content)
        if premature:
            warning = PrematureEndError(
                code="PREMATURE_END",
                message="Stream closed before terminator; keeping accumulated content",
            )
            self._log(
                logging.WARNING,
                warning.message,
                log_ctx,
                code=warning.code,
                dropped_tail=splitter.dropped_tail is not None,
            )

        self.state = StreamState.COMPLETED
        if state.content:
            self._store.append(self._session_id, "assistant", state.content)
        self._log(
            logging.INFO,
            "Completed chat stream",
            log_ctx,
            terminated=terminated,
            message_id=state.message_id,
            content_length=len(state.content),
        )
        return StreamResult(
            state=StreamState.COMPLETED,
            log=state.log,
            message=state.message,
            terminated=terminated,
            premature_end=premature,
            warning=warning,
        )

    def _fail(self, error: TransportError, state: AccumulatorState, log_ctx: Dict[str, Any]) -> StreamResult:
        state = self._accumulator.finish(state)
        if self._cancel.cancelled:
            return self._cancelled(state, log_ctx)
        self.state = StreamState.FAILED
        self._log(
            logging.ERROR,
            "Chat stream failed",
            log_ctx,
            code=error.code,
            http_status=error.http_status,
            error=error.message,
        )
        self._notifier.notify_error(self._error_message)
        return StreamResult(
            state=StreamState.FAILED,
            log=state.log,
            message=state.message,
            error=error,
        )

    def _cancelled(self, state: AccumulatorState, log_ctx: Dict[str, Any]) -> StreamResult:
        self.state = StreamState.CANCELLED
        self._log(logging.INFO, "Chat stream cancelled", log_ctx, message_id=state.message_id)
        return StreamResult(state=StreamState.CANCELLED, log=state.log, message=state.message)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
