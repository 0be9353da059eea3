"""从数据帧 payload 中提取增量文本。

对话服务的数据帧采用 OpenAI 兼容的 chunk 结构：

    {"choices": [{"delta": {"content": "..."}}]}

这里只读取 choices[0].delta.content，其余字段（finish_reason、usage、
role 以及未来新增的字段）一律忽略，保证向前兼容。
"""

import json
from typing import Any

from mindaid_core.domain.exceptions import FrameDecodeError


class DeltaExtractor:
    """数据帧 -> 增量文本片段（可能为空字符串）。"""

    def extract(self, payload: str) -> str:
        """解析 payload 并返回增量文本。

        Raises:
            FrameDecodeError: payload 不是合法 JSON。由编排层捕获并跳过该帧。
        """

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise FrameDecodeError(
                code="FRAME_DECODE_ERROR",
                message=str(e),
                payload_preview=payload[:64],
            ) from e
        return self._content_of(data)

    @staticmethod
    def _content_of(data: Any) -> str:
        if not isinstance(data, dict):
            return ""
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        delta = first.get("delta")
        if not isinstance(delta, dict):
            return ""
        content = delta.get("content")
        # content 可能为 null（例如只携带 role 的首帧），按空片段处理
        if isinstance(content, str):
            return content
        return ""
