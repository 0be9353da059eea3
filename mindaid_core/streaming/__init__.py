"""流式响应解析与消费。

各阶段按数据流方向排列：
- frame_splitter: 字节块 -> 文本行。
- event_decoder: 文本行 -> skip / terminator / data。
- delta_extractor: data payload -> 增量文本。
- accumulator: 增量文本 -> 进行中的助手消息。
- consumer: 串联以上阶段的编排层。
"""

from mindaid_core.streaming.accumulator import AccumulatorState, MessageAccumulator
from mindaid_core.streaming.cancel import CancelToken
from mindaid_core.streaming.consumer import StreamConsumer, StreamResult, StreamState
from mindaid_core.streaming.delta_extractor import DeltaExtractor
from mindaid_core.streaming.event_decoder import EventDecoder
from mindaid_core.streaming.frame_splitter import FrameSplitter

__all__ = [
    "AccumulatorState",
    "CancelToken",
    "DeltaExtractor",
    "EventDecoder",
    "FrameSplitter",
    "MessageAccumulator",
    "StreamConsumer",
    "StreamResult",
    "StreamState",
]
