"""
백엔드 호출 재시도 정책
tenacity 기반 지수 백오프 재시도입니다.
"""

import time
from typing import Any, Callable, Optional, TypeVar
from loguru import logger
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.config import settings
from .client import BackendError

T = TypeVar("T")


def is_retryable(error: BaseException) -> bool:
    """재시도 가능한 BackendError만 재시도"""
    return isinstance(error, BackendError) and error.retryable


class RetryPolicy:
    """
    단일 백엔드 호출을 감싸는 재시도 정책

    - 최대 max_attempts회 시도
    - min_wait ~ max_wait 사이 지수 백오프
    - 마지막 실패는 원래 예외 그대로 전달
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        min_wait: Optional[float] = None,
        max_wait: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_attempts = max_attempts or settings.RETRY_MAX_ATTEMPTS
        self.min_wait = settings.RETRY_MIN_WAIT if min_wait is None else min_wait
        self.max_wait = settings.RETRY_MAX_WAIT if max_wait is None else max_wait
        self.sleep = sleep
        self.logger = logger.bind(component="RetryPolicy")

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self.logger.warning(
            f"Retrying backend call (attempt {retry_state.attempt_number}/{self.max_attempts}): {error}"
        )

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception(is_retryable),
            before_sleep=self._before_sleep,
            sleep=self.sleep,
            reraise=True,
        )
        return retrying(fn, *args, **kwargs)


class NoRetryPolicy(RetryPolicy):
    """재시도 없이 한 번만 호출"""

    def __init__(self):
        super().__init__(max_attempts=1, min_wait=0, max_wait=0)

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        return fn(*args, **kwargs)
