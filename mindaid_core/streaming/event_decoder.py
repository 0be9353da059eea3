"""流式行的分类。"""

from mindaid_core.domain.models import SKIP, TERMINATOR, DecodedEvent

COMMENT_PREFIX = ":"
DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class EventDecoder:
    """把一行文本分类为 skip / terminator / data。

    判定顺序：
    1. 注释行（以 ":" 开头）或空行 -> skip；
    2. 不以 "data: " 开头的行 -> skip（无关或格式错误的行一律忽略，不视为错误）；
    3. 去掉前缀并 trim 后等于 "[DONE]" -> terminator；
    4. 其余 -> data(payload)。
    """

    def __init__(
        self,
        data_prefix: str = DATA_PREFIX,
        comment_prefix: str = COMMENT_PREFIX,
        done_sentinel: str = DONE_SENTINEL,
    ):
        self._data_prefix = data_prefix
        self._comment_prefix = comment_prefix
        self._done_sentinel = done_sentinel

    def classify(self, line: str) -> DecodedEvent:
        if line.startswith(self._comment_prefix) or not line.strip():
            return SKIP
        if not line.startswith(self._data_prefix):
            return SKIP
        payload = line[len(self._data_prefix) :].strip()
        if payload == self._done_sentinel:
            return TERMINATOR
        return DecodedEvent.data(payload)
