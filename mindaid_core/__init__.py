"""MindAid Core 顶层包。

该包提供陪伴类应用中聊天功能的核心实现，
包括配置加载、领域模型、流式响应解析、HTTP 传输、
对话编排与本地持久化等能力。
"""

from mindaid_core.streaming import StreamConsumer, StreamResult, StreamState

__all__ = ["StreamConsumer", "StreamResult", "StreamState"]
