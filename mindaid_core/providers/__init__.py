"""对话服务传输层。

该包下的模块负责：
- 定义传输抽象接口 (base)。
- 提供基于 httpx 的具体实现 (http_transport)。
"""

from typing import Optional

from mindaid_core.config.settings import settings
from mindaid_core.providers.base import ChatStream, ChatTransport
from mindaid_core.providers.http_transport import HttpChatTransport


def create_transport(cfg: Optional[object] = None) -> ChatTransport:
    """根据配置创建传输实例，默认使用全局 settings。"""

    return HttpChatTransport(cfg or settings)


__all__ = ["ChatStream", "ChatTransport", "HttpChatTransport", "create_transport"]
