"""
Core exceptions
核心异常定义

所有网络相关错误最终都会被归一化为 NotesApiError 的某个子类，
上层（同步器、变更编排器）只需处理这一种错误形态。
"""

from typing import Any, Dict, List, Optional

GENERIC_NETWORK_MESSAGE = "Unable to reach the notes service"
GENERIC_APPLICATION_MESSAGE = "An unexpected error occurred"


class NoteSyncException(Exception):
    """notesync 基础异常"""
    pass


class ConfigError(NoteSyncException):
    """配置异常"""
    pass


class ValidationFailed(NoteSyncException):
    """
    表单校验失败
    只在本地产生，永远不会到达传输层。
    """

    def __init__(self, field_errors: Dict[str, List[str]]):
        self.field_errors = field_errors
        summary = "; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in field_errors.items())
        super().__init__(summary or "Invalid input")


class NotesApiError(NoteSyncException):
    """笔记服务调用失败的统一错误形态"""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class NotesTransportError(NotesApiError):
    """没有收到任何响应（连接失败、超时等）"""

    def __init__(self, message: str = GENERIC_NETWORK_MESSAGE, payload: Any = None):
        super().__init__(message, status_code=None, payload=payload)


class NotesApplicationError(NotesApiError):
    """收到了非 2xx 响应"""
    pass


class PageSizeMismatchError(NotesApplicationError):
    """服务端返回的条目数超过了请求的分页大小"""
    pass


class NotesUnexpectedError(NotesApiError):
    """无法归类的其他错误"""
    pass


class NotesRequestCancelled(NotesApiError):
    """等待中的请求随缓存一起被丢弃（例如应用终止）"""

    def __init__(self, message: str = "Request cancelled"):
        super().__init__(message)


def error_message_from_body(body: Any) -> str:
    """
    从服务端错误响应体中提取提示信息。
    优先级: message 字段 > detail 字段 > 通用兜底文案。
    """
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return GENERIC_APPLICATION_MESSAGE


def normalize_error(exc: BaseException) -> NotesApiError:
    """把任意异常转换为 NotesApiError，已经归一化的异常原样返回。"""
    if isinstance(exc, NotesApiError):
        return exc
    message = str(exc) or exc.__class__.__name__
    return NotesUnexpectedError(message, payload=exc)
