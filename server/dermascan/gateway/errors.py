"""分析网关错误类型 — 每种失败一个异常类，携带 HTTP 状态码与对外消息。"""

from __future__ import annotations


class AnalysisError(Exception):
    """网关失败基类。message 直接作为响应体 error 字段。"""

    status_code: int = 500
    default_message: str = "Analysis failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class GatewayConfigError(AnalysisError):
    default_message = "Model API key not configured"


class RateLimitedError(AnalysisError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."


class ServiceUnavailableError(AnalysisError):
    status_code = 402
    default_message = "Service unavailable. Please contact support."


class UpstreamError(AnalysisError):
    """其余非 2xx 或传输层错误。"""

    def __init__(self, status: int | None = None, message: str | None = None) -> None:
        self.status = status
        if message is None:
            message = f"AI Gateway error: {status}" if status is not None else None
        super().__init__(message)


class EmptyReplyError(AnalysisError):
    default_message = "No content in AI response"


class ReplyParseError(AnalysisError):
    default_message = "Failed to parse AI response as JSON"


class ReplyValidationError(AnalysisError):
    default_message = "Invalid response format from AI"
