"""
백엔드 연동 모듈
"""

from .client import (
    BackendError,
    BackendTimeoutError,
    BackendResponse,
    ModelBackendClient,
    HttpBackendClient,
)
from .parser import ParseOutcome, ParseStatus, ResponseParser, JsonResponseParser
from .retry import RetryPolicy, NoRetryPolicy

__all__ = [
    "BackendError",
    "BackendTimeoutError",
    "BackendResponse",
    "ModelBackendClient",
    "HttpBackendClient",
    "ParseOutcome",
    "ParseStatus",
    "ResponseParser",
    "JsonResponseParser",
    "RetryPolicy",
    "NoRetryPolicy",
]
