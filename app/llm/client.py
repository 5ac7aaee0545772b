"""
스코어링 백엔드 클라이언트
백엔드 호출 계약과 HTTP 구현을 정의합니다.
프롬프트 구성과 프로토콜 세부사항은 이 모듈이 담당합니다.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Optional
from loguru import logger
from pydantic import BaseModel, Field

from app.config import settings
import httpx


class BackendError(Exception):
    """백엔드 호출 실패"""

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class BackendTimeoutError(BackendError):
    """백엔드 응답 시간 초과 (재시도 가능)"""

    def __init__(self, message: str):
        super().__init__(message, retryable=True)


class BackendResponse(BaseModel):
    """백엔드 원시 응답"""
    text: str = Field(description="백엔드가 반환한 원문")
    cost: Optional[float] = Field(default=None, description="호출 비용 (모르면 None)")
    latency_ms: Optional[float] = Field(default=None, description="호출 지연 시간 (ms)")


class ModelBackendClient(ABC):
    """
    백엔드 클라이언트 기본 클래스

    score()는 응답을 돌려주거나 BackendError를 발생시킵니다.
    응답 텍스트 해석은 호출 측(ResponseParser)의 몫입니다.
    """

    @abstractmethod
    def score(self, backend_id: str, dimension: str, content: Any) -> BackendResponse:
        """(backend, dimension, content) 한 건 평가"""
        pass

    def close(self):
        """리소스 해제 (필요시 오버라이드)"""
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def build_dimension_prompt(dimension: str, content: Any) -> str:
    """차원 공통 평가 프롬프트"""
    body = json.dumps(content, ensure_ascii=False, indent=2, default=str)
    return (
        f"Evaluate the following content on the '{dimension}' dimension.\n\n"
        f"{body}\n\n"
        "Rate on a scale of 0-100.\n"
        'Respond with JSON: {"score": number, "confidence": number, '
        '"reasoning": "brief explanation"}'
    )


class HttpBackendClient(ModelBackendClient):
    """
    HTTP 스코어링 게이트웨이 클라이언트

    POST {base_url}/score
        요청: {"backend", "dimension", "prompt", "content"}
        응답: {"text", "cost"?, "latency_ms"?}

    환경변수:
    - BACKEND_BASE_URL: 게이트웨이 주소
    - BACKEND_API_KEY: 인증 키 (선택)
    """

    RETRYABLE_STATUS_CODES = [408, 429, 500, 502, 503, 504]

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.BACKEND_API_KEY

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        self.client = client or httpx.Client(
            headers=headers,
            timeout=timeout or settings.BACKEND_TIMEOUT,
        )
        self.logger = logger.bind(source="HttpBackend")

    def score(self, backend_id: str, dimension: str, content: Any) -> BackendResponse:
        payload = {
            "backend": backend_id,
            "dimension": dimension,
            "prompt": build_dimension_prompt(dimension, content),
            "content": content,
        }

        started = time.monotonic()
        try:
            response = self.client.post(
                f"{self.base_url}/score",
                content=json.dumps(payload, ensure_ascii=False, default=str),
            )
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(f"{backend_id} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise BackendError(f"{backend_id} request failed: {e}", retryable=True) from e

        elapsed_ms = (time.monotonic() - started) * 1000

        if response.status_code != 200:
            retryable = response.status_code in self.RETRYABLE_STATUS_CODES
            self.logger.warning(f"Backend HTTP error: {backend_id} {response.status_code}")
            raise BackendError(
                f"{backend_id} returned HTTP {response.status_code}",
                retryable=retryable,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(f"{backend_id} returned non-JSON body") from e

        if "text" not in data:
            raise BackendError(f"No response text from backend {backend_id}")

        return BackendResponse(
            text=str(data["text"]),
            cost=data.get("cost"),
            latency_ms=data.get("latency_ms", elapsed_ms),
        )

    def close(self):
        self.client.close()
