"""对外 API 服务模块。

提供简化的函数接口供上层应用（界面层）调用。
"""

from typing import Optional, Dict, Any

from mindaid_core.agents.chat_agent import ChatAgent
from mindaid_core.config.settings import settings
from mindaid_core.domain.conversation import ConversationSubscriber, MessageStore
from mindaid_core.domain.models import ConversationLog
from mindaid_core.infrastructure.logging.logger import logger
from mindaid_core.infrastructure.notifications import LoggingNotifier
from mindaid_core.infrastructure.session import SessionManager
from mindaid_core.infrastructure.storage.json_store import JsonMessageStore
from mindaid_core.providers import create_transport
from mindaid_core.streaming.cancel import CancelToken


_store: Optional[MessageStore] = None
_sessions: Optional[SessionManager] = None
_agent: Optional[ChatAgent] = None


def get_default_agent() -> ChatAgent:
    """获取当前匿名会话的 ChatAgent 实例（单例），首次创建时加载历史。"""
    global _store, _sessions, _agent
    if _store is None:
        _store = JsonMessageStore(root=settings.storage_root)
    if _sessions is None:
        _sessions = SessionManager(root=settings.storage_root)
    if _agent is None:
        _agent = ChatAgent(
            store=_store,
            transport=create_transport(),
            notifier=LoggingNotifier(),
            session_id=_sessions.get_session_id(),
        )
        _agent.load_history()
    return _agent


def load_chat_history() -> list[Dict[str, Any]]:
    """返回当前会话的消息列表（没有历史时只有欢迎语）。"""
    # 首次创建时 get_default_agent 已经读取过存储
    created = _agent is None
    agent = get_default_agent()
    return _serialize_log(agent.log if created else agent.load_history())


def send_chat_message(
    user_input: str,
    subscriber: Optional[ConversationSubscriber] = None,
    cancel_token: Optional[CancelToken] = None,
) -> Dict[str, Any]:
    """发送一条消息并阻塞直到流式回复结束。

    Args:
        user_input: 用户输入内容
        subscriber: 会话快照回调，每次助手消息增长时调用
        cancel_token: 取消令牌（可选，用于界面离开时中止读取）

    Returns:
        包含会话ID、流状态、助手消息和完整消息列表的字典

    Raises:
        ValidationError: 输入为空或上一条回复仍在生成
    """
    agent = get_default_agent()
    try:
        result = agent.send(user_input, subscriber=subscriber, cancel_token=cancel_token)
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {
            "session_id": agent.session_id,
            "error": str(e),
        }})
        raise

    return {
        "session_id": agent.session_id,
        "state": result.state.value,
        "assistant_message": (
            {"id": result.message.id, "content": result.message.content}
            if result.message is not None
            else None
        ),
        "messages": _serialize_log(result.log),
    }


def clear_session() -> None:
    """丢弃当前匿名会话 ID，下次调用时会生成新会话。"""
    global _sessions, _agent
    if _sessions is None:
        _sessions = SessionManager(root=settings.storage_root)
    _sessions.clear_session()
    _agent = None


def _serialize_log(log: ConversationLog) -> list[Dict[str, Any]]:
    return [{"id": m.id, "role": m.role, "content": m.content} for m in log]
