"""领域层模型与协议。

包含：
- models: ConversationMessage / ConversationLog / DecodedEvent 等核心数据结构。
- conversation: 持久化记录与 MessageStore / Notifier / Subscriber 协议。
- exceptions: 业务异常类型定义。
"""
