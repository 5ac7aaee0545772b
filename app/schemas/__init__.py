"""
EvalLens 스키마 패키지
요청, 백엔드 프로필, 평가 결과 스키마를 정의합니다.
"""

from .request import (
    EvaluationRequest,
    EvaluationConstraints,
    EvaluationTier,
    Priority,
)
from .profile import ModelPerformanceProfile
from .results import (
    FALLBACK_BACKEND,
    Impact,
    OptimizationStrategy,
    DimensionResult,
    Recommendation,
    EvaluationResult,
    CacheEntry,
    CacheStats,
    PerformanceSummary,
    PerformanceReport,
)

__all__ = [
    "EvaluationRequest",
    "EvaluationConstraints",
    "EvaluationTier",
    "Priority",
    "ModelPerformanceProfile",
    "FALLBACK_BACKEND",
    "Impact",
    "OptimizationStrategy",
    "DimensionResult",
    "Recommendation",
    "EvaluationResult",
    "CacheEntry",
    "CacheStats",
    "PerformanceSummary",
    "PerformanceReport",
]
