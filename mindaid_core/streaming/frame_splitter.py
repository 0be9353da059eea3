"""把传输层的字节块切分为文本行。

网络分块的边界和行边界、字符边界都没有对齐关系：

- 一行可能被拆在多个块里；
- 一个多字节 UTF-8 字符也可能被拆开。

因此这里使用增量解码器，未凑齐的字节留在解码器内部，
未遇到换行的文本留在 buffer 中，直到下一次 feed。
"""

import codecs
from typing import List, Optional

from mindaid_core.infrastructure.logging.logger import logger


class FrameSplitter:
    """单个流专用的行切分器，状态只在一次流式调用内有效。"""

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self._dropped_tail: Optional[str] = None

    @property
    def pending(self) -> str:
        """尚未遇到换行符的缓冲文本。"""

        return self._buffer

    @property
    def dropped_tail(self) -> Optional[str]:
        """flush 时被丢弃的未终止尾行（没有则为 None）。"""

        return self._dropped_tail

    def feed(self, chunk: bytes) -> List[str]:
        """送入一个字节块，返回本次能切出的完整行。"""

        if not isinstance(chunk, (bytes, bytearray)):
            raise TypeError(f"chunk must be bytes-like, got {type(chunk).__name__}")
        self._buffer += self._decoder.decode(bytes(chunk))
        return self._drain()

    def flush(self) -> List[str]:
        """流自然结束时调用。

        没有换行结尾的最后一行按约定丢弃：格式正确的流总是以结束哨兵收尾，
        所以剩下的文本被视为不完整的帧。
        """

        # feed 之后 buffer 中不含换行，解码器残留的半个字符也不会产生换行
        self._buffer += self._decoder.decode(b"", final=True)
        tail = self._buffer
        self._buffer = ""
        if tail.strip():
            self._dropped_tail = tail
            logger.debug(
                "Dropped unterminated trailing line",
                extra={"extra": {"tail_length": len(tail)}},
            )
        return []

    def _drain(self) -> List[str]:
        lines: List[str] = []
        while True:
            idx = self._buffer.find("\n")
            if idx == -1:
                break
            line = self._buffer[:idx]
            self._buffer = self._buffer[idx + 1 :]
            if line.endswith("\r"):
                line = line[:-1]
            lines.append(line)
        return lines
