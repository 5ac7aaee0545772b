"""
차원별 백엔드 선호도 테이블
balanced 전략이 차원마다 사용할 백엔드 우선순위를 데이터로 관리합니다.
"""

import json
from pathlib import Path
from typing import Optional
from loguru import logger


# 차원명 -> 선호 백엔드 (우선순위 순)
DEFAULT_DIMENSION_PREFERENCES: dict[str, list[str]] = {
    "content-quality": ["gpt-4-turbo-preview", "claude-3-opus-20240229"],
    "market-research": ["gpt-4-turbo-preview", "claude-3-sonnet-20240229"],
    "strategic-soundness": ["claude-3-opus-20240229", "gpt-4-turbo-preview"],
    "implementation-readiness": ["gpt-3.5-turbo", "claude-3-haiku-20240307"],
    "technical-feasibility": ["gpt-4-turbo-preview", "claude-3-sonnet-20240229"],
}

# 테이블에 없는 차원
DEFAULT_FALLBACK_PREFERENCE: list[str] = ["gpt-3.5-turbo"]

# comprehensive 평가 기본 차원
COMPREHENSIVE_DIMENSIONS: list[str] = [
    "content-quality",
    "market-research",
    "strategic-soundness",
    "implementation-readiness",
]


class DimensionPreferences:
    """
    차원별 선호도 조회

    시작 시 한 번 로드되며, 파일로 교체할 수 있습니다.
    파일 형식:
        {
            "preferences": {"content-quality": ["backend-a", "backend-b"]},
            "fallback": ["backend-c"]
        }
    """

    def __init__(
        self,
        table: Optional[dict[str, list[str]]] = None,
        fallback: Optional[list[str]] = None,
    ):
        source = DEFAULT_DIMENSION_PREFERENCES if table is None else table
        self._table = {dim: list(backends) for dim, backends in source.items()}
        self._fallback = list(fallback or DEFAULT_FALLBACK_PREFERENCE)

    @classmethod
    def from_file(cls, path: str) -> "DimensionPreferences":
        """JSON 파일에서 선호도 로드"""
        with open(Path(path), "r", encoding="utf-8") as f:
            data = json.load(f)

        table = data.get("preferences")
        if not isinstance(table, dict):
            raise ValueError(f"선호도 파일 형식 오류 (preferences 누락): {path}")

        logger.bind(component="DimensionPreferences").info(
            f"Loaded dimension preferences: {len(table)} dimensions from {path}"
        )
        return cls(table=table, fallback=data.get("fallback"))

    @classmethod
    def load(cls, path: Optional[str] = None) -> "DimensionPreferences":
        """경로가 있으면 파일, 없으면 내장 테이블"""
        if path:
            return cls.from_file(path)
        return cls()

    def for_dimension(self, dimension: str) -> list[str]:
        return list(self._table.get(dimension, self._fallback))

    @property
    def fallback(self) -> list[str]:
        return list(self._fallback)

    def dimensions(self) -> list[str]:
        return list(self._table.keys())
