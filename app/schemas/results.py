"""
결과 스키마
전략 선택, 차원 평가, 최종 평가 결과를 정의합니다.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from .profile import ModelPerformanceProfile


FALLBACK_BACKEND = "fallback"


class Impact(str, Enum):
    """권고 영향도"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class OptimizationStrategy(BaseModel):
    """
    Strategy Agent 출력
    요청마다 계산되는 일회성 실행 계획입니다.
    """
    name: str = Field(
        description="전략 이름",
        examples=["cost-optimized", "speed-optimized", "quality-optimized", "balanced"]
    )
    candidates: list[str] = Field(
        default_factory=list,
        description="후보 백엔드 (우선순위 순)"
    )
    dimension_backends: dict[str, str] = Field(
        default_factory=dict,
        description="차원별 지정 백엔드 (balanced 전략)"
    )
    estimated_cost: float = Field(default=0.0, description="예상 비용")
    estimated_latency_ms: float = Field(default=0.0, description="예상 지연 시간 (ms)")
    parallelizable: bool = Field(
        default=False,
        description="차원 간 병렬 실행 가능 여부"
    )
    rationale: str = Field(default="", description="전략 선택 근거")

    def backend_for(self, dimension: str) -> Optional[str]:
        """차원에 사용할 백엔드 (지정이 없으면 첫 번째 후보)"""
        backend = self.dimension_backends.get(dimension)
        if backend:
            return backend
        return self.candidates[0] if self.candidates else None


class DimensionResult(BaseModel):
    """개별 차원 평가 결과"""
    score: float = Field(description="점수 (0-100)", ge=0, le=100)
    confidence: float = Field(description="신뢰도 (0-100)", ge=0, le=100)
    reasoning: str = Field(default="", description="평가 근거")
    backend_used: str = Field(description="사용한 백엔드 (실패 시 fallback)")
    observed_cost: float = Field(default=0.0, description="관측 비용")

    @property
    def is_fallback(self) -> bool:
        return self.backend_used == FALLBACK_BACKEND


class Recommendation(BaseModel):
    """개선 권고"""
    model_config = ConfigDict(use_enum_values=True)

    category: str = Field(
        description="권고 카테고리 (차원명 또는 cost-optimization 등)",
        examples=["market-research", "cost-optimization"]
    )
    suggestion: str = Field(description="권고 내용")
    impact: Impact = Field(default=Impact.MEDIUM)
    effort: Impact = Field(default=Impact.MEDIUM)


class EvaluationResult(BaseModel):
    """
    최종 평가 결과

    항상 완전한 형태로 반환됩니다 (차원 점수가 비어 있을 수는 있음).
    """
    evaluation_id: str = Field(description="평가 ID")
    overall_score: float = Field(default=0.0, description="전체 점수 (차원 점수 평균)")
    confidence: float = Field(default=0.0, description="전체 신뢰도 (차원 신뢰도 평균)")
    dimension_scores: dict[str, DimensionResult] = Field(
        default_factory=dict,
        description="차원별 결과 (평가되지 않은 차원은 없음)"
    )
    actual_cost: float = Field(default=0.0, description="실제 비용")
    actual_latency_ms: float = Field(default=0.0, description="실제 소요 시간 (ms)")
    backends_used: list[str] = Field(default_factory=list)
    cache_hit: bool = False
    strategy_name: str = Field(default="", description="적용 전략")
    tier: str = Field(default="standard")
    budget_utilization_pct: float = Field(default=0.0, description="예산 사용률 (%)")
    fallbacks_used: list[str] = Field(
        default_factory=list,
        description="폴백/중단 사유",
        examples=[["dimension-market-research-failed", "cost-budget-exceeded"]]
    )
    recommendations: list[Recommendation] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)


class CacheEntry(BaseModel):
    """
    캐시 항목
    결과 스냅샷은 불변이며, 접근 기록 필드만 갱신됩니다.
    """
    content_hash: str
    result: EvaluationResult
    created_at: float = Field(description="저장 시각 (epoch 초)")
    ttl_seconds: float = Field(description="항목 TTL (초)")
    access_count: int = 1
    last_accessed_at: float = Field(description="마지막 접근 시각 (epoch 초)")


class CacheStats(BaseModel):
    """운영용 캐시/비용 통계"""
    size: int = 0
    hit_rate_pct: float = 0.0
    total_cost_spent: float = 0.0
    total_evaluations: int = 0
    avg_cost_per_evaluation: float = 0.0


class PerformanceSummary(BaseModel):
    """성능 리포트 요약"""
    total_evaluations: int
    total_cost_spent: float
    avg_cost_per_evaluation: float
    cache_hit_rate_pct: float
    models_tracked: int


class PerformanceReport(BaseModel):
    """운영 성능 리포트"""
    summary: PerformanceSummary
    model_performance: list[ModelPerformanceProfile] = Field(default_factory=list)
    cache_stats: CacheStats
    recommendations: list[str] = Field(default_factory=list)
