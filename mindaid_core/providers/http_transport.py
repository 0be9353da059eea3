"""基于 httpx 的对话服务传输实现。

本模块负责：

1. 把会话历史转换为对话服务需要的请求体 {"messages": [{role, content}, ...]}。
2. 以流式方式 POST 请求，并处理网络/状态码异常。
3. 把响应体按原始字节块交给上层，不做任何分帧处理。

分帧、解码、增量拼接都在 mindaid_core.streaming 中完成，
这里只是“字节流生产者”。
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List

import httpx

from mindaid_core.domain.exceptions import ApiError, NetworkError, RateLimitError
from mindaid_core.domain.models import ChatTurn


class HttpChatStream:
    """包装 httpx.Response，把读取过程中的网络异常统一为 NetworkError。"""

    def __init__(self, response: httpx.Response):
        self._response = response

    def iter_bytes(self) -> Iterator[bytes]:
        try:
            for chunk in self._response.iter_bytes():
                if chunk:
                    yield chunk
        except (httpx.RequestError, httpx.StreamError) as e:
            # 读取中途连接被重置、或被 close() 中止
            raise NetworkError(code="NETWORK_ERROR", message=str(e)) from e

    def close(self) -> None:
        self._response.close()


class HttpChatTransport:
    """对话服务 HTTP 客户端。

    - name: 传输名称（供日志/调试使用）。
    - open_stream: 对外统一调用入口，返回 HttpChatStream 的上下文管理器。
    """

    name = "http"

    def __init__(self, settings):
        # Settings 里包含 chat_url、chat_api_key、超时等配置
        self._settings = settings

    @contextmanager
    def open_stream(self, turns: List[ChatTurn]) -> Iterator[HttpChatStream]:
        payload = self._build_payload(turns)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    self._settings.chat_url,
                    json=payload,
                    headers=self._headers(),
                ) as resp:
                    self._check_status(resp)
                    yield HttpChatStream(resp)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e)) from e

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = getattr(self._settings, "chat_api_key", None)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    @staticmethod
    def _build_payload(turns: List[ChatTurn]) -> dict:
        return {"messages": [turn.to_payload() for turn in turns]}

    @staticmethod
    def _check_status(resp: httpx.Response) -> None:
        if resp.status_code == 429:
            # 限流错误交给上层处理
            raise RateLimitError(code="RATE_LIMIT", message="Chat service rate limit", http_status=429)
        if resp.status_code == 204:
            raise ApiError(code="EMPTY_BODY", message="Chat service returned no response body", http_status=204)
        # 非 2xx 一律视为失败，包括未跟随的 3xx 重定向
        if not 200 <= resp.status_code < 300:
            resp.read()
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
