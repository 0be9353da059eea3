"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层或 UI 层做统一捕获与用户提示。

流式对话相关的分类：

- TransportError 及其子类：连接失败、非 2xx 响应、响应体缺失，终止当前流。
- FrameDecodeError：单个数据帧不是合法 JSON，本地跳过，流继续。
- PrematureEndError：流在没有结束哨兵的情况下关闭，视为软成功，仅记录日志。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 session_id、payload 片段等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class TransportError(BusinessError):
    """传输层错误的基类，对当前流是致命的。"""


class NetworkError(TransportError):
    """网络层错误，例如连接失败、超时、读取中途连接被重置等。"""


class ApiError(TransportError):
    """对话服务返回非 2xx/429 状态码，或响应没有可读的响应体。"""


class RateLimitError(TransportError):
    """对话服务限流（429）。"""


class FrameDecodeError(BusinessError):
    """数据帧 payload 不是合法 JSON。"""


class PrematureEndError(BusinessError):
    """流在收到结束哨兵之前关闭。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""
