"""默认的错误通知实现。

记录需要展示给用户的错误提示并写入日志；
界面层可以替换为自己的弹窗/toast 实现。
"""

from typing import List

from mindaid_core.infrastructure.logging.logger import logger


class LoggingNotifier:
    """保留所有通知内容的 Notifier。"""

    def __init__(self):
        self.messages: List[str] = []

    def notify_error(self, message: str) -> None:
        self.messages.append(message)
        logger.error("User notified of error", extra={"extra": {"notification": message}})
