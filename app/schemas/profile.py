"""
백엔드 성능 프로필 스키마
레지스트리가 백엔드별로 학습하는 통계입니다.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class ModelPerformanceProfile(BaseModel):
    """
    백엔드 성능 프로필

    시작 시 기본값으로 생성되고, 이후에는 EMA 규칙으로만 갱신됩니다.
    """

    backend_id: str = Field(
        description="백엔드 ID",
        examples=["gpt-4-turbo-preview"]
    )
    avg_cost_per_call: float = Field(description="호출당 평균 비용")
    avg_latency_ms: float = Field(description="평균 지연 시간 (ms)")
    accuracy_score: float = Field(
        description="정확도 점수 (0-100)",
        ge=0,
        le=100
    )
    reliability_score: float = Field(
        description="신뢰도 점수 (0-100, 성공률)",
        ge=0,
        le=100
    )
    tokens_per_dollar: float = Field(
        default=100000,
        description="비용 추정용 달러당 토큰 수"
    )
    specialties: list[str] = Field(
        default_factory=list,
        description="특화 태그",
        examples=[["fast", "cost-effective"]]
    )
    last_updated: datetime = Field(default_factory=datetime.now)
