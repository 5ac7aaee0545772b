"""
백엔드 응답 파서
응답 텍스트를 {score, confidence, reasoning}으로 해석합니다.
파싱 실패는 예외가 아니라 fallback 결과로 표현됩니다.
"""

import json
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any
from loguru import logger
from pydantic import BaseModel


class ParseStatus(str, Enum):
    PARSED = "parsed"
    FALLBACK = "fallback"


class ParseOutcome(BaseModel):
    """파싱 결과 (성공 또는 fallback)"""
    status: ParseStatus
    score: float
    confidence: float
    reasoning: str

    @property
    def ok(self) -> bool:
        return self.status == ParseStatus.PARSED


FALLBACK_SCORE = 50.0
FALLBACK_CONFIDENCE = 30.0
FALLBACK_REASONING = "Failed to parse response properly"


def fallback_outcome(reasoning: str = FALLBACK_REASONING) -> ParseOutcome:
    return ParseOutcome(
        status=ParseStatus.FALLBACK,
        score=FALLBACK_SCORE,
        confidence=FALLBACK_CONFIDENCE,
        reasoning=reasoning,
    )


class ResponseParser(ABC):
    """응답 파서 기본 클래스. parse()는 절대 예외를 던지지 않습니다."""

    @abstractmethod
    def parse(self, text: str) -> ParseOutcome:
        pass


class JsonResponseParser(ResponseParser):
    """
    JSON 응답 파서

    - ```json ... ``` 코드 블록 또는 첫 번째 {...} 구간을 추출
    - score/confidence는 0-100으로 보정
    - confidence 누락 시 50, reasoning 누락 시 기본 문구
    """

    _OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

    def __init__(self):
        self.logger = logger.bind(component="JsonResponseParser")

    def parse(self, text: str) -> ParseOutcome:
        try:
            data = json.loads(self._extract(text or ""))
            if not isinstance(data, dict):
                raise ValueError("response is not a JSON object")

            return ParseOutcome(
                status=ParseStatus.PARSED,
                score=self._clamp(data.get("score"), default=0.0),
                confidence=self._clamp(data.get("confidence"), default=50.0),
                reasoning=str(data.get("reasoning") or "No reasoning provided"),
            )
        except (ValueError, TypeError) as e:
            self.logger.warning(f"Failed to parse dimension response: {e} | {(text or '')[:100]}")
            return fallback_outcome()

    def _extract(self, text: str) -> str:
        # ```json ... ``` 패턴 처리
        if "```json" in text:
            text = text.split("```json")[1].split("```")[0]
        elif "```" in text:
            text = text.split("```")[1].split("```")[0]

        match = self._OBJECT_PATTERN.search(text)
        if not match:
            raise ValueError("no JSON object found")
        return match.group(0)

    @staticmethod
    def _clamp(value: Any, default: float) -> float:
        if value is None or isinstance(value, bool):
            return default
        return max(0.0, min(100.0, float(value)))
