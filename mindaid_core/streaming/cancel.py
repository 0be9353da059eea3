"""流式调用的取消令牌。

调用方（通常是界面线程）与正在读取的流共享同一个令牌。
"""

import threading
from typing import Callable, List


class CancelToken:
    """线程安全的取消标记。

    消费者会注册一个中止回调（关闭当前响应），
    这样阻塞在网络读取上的线程在 cancel() 之后能尽快返回。
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """注册回调；若已经取消则立即执行。"""

        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
