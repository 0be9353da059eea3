"""对话传输层抽象接口。

上层 StreamConsumer 不直接依赖 httpx，而是依赖此协议：

- ChatTransport.open_stream(turns) 发起一次请求，返回一个上下文管理器；
- 进入上下文得到 ChatStream，通过 iter_bytes() 逐块读取响应体；
- 退出上下文时释放连接。

连接失败、非 2xx 状态码、响应体缺失都必须以 TransportError 抛出，
这样编排层可以统一转为 Failed 状态并通知用户。
"""

from typing import ContextManager, Iterator, List, Protocol

from mindaid_core.domain.models import ChatTurn


class ChatStream(Protocol):
    """一次已建立的流式响应。"""

    def iter_bytes(self) -> Iterator[bytes]:
        ...

    def close(self) -> None:
        """中止读取。可以在其他线程调用，用于取消阻塞中的读操作。"""

        ...


class ChatTransport(Protocol):
    """对话服务传输协议。

    实现者需要提供：
    - name: 传输名称，用于日志。
    - open_stream(turns): 发送完整的 {role, content} 历史并返回流式响应。
    """

    name: str

    def open_stream(self, turns: List[ChatTurn]) -> ContextManager[ChatStream]:
        ...
