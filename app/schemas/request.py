"""
평가 요청 스키마
호출자가 제출하는 평가 요청을 구조화합니다.
"""

import uuid
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict


class EvaluationTier(str, Enum):
    """평가 등급"""
    QUICK = "quick"
    STANDARD = "standard"
    COMPREHENSIVE = "comprehensive"


class Priority(str, Enum):
    """요청 우선순위"""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class EvaluationConstraints(BaseModel):
    """
    요청 제약 조건

    모든 조건은 optional이며, 설정된 조건만 전략 선택과 실행 제한에 사용됩니다.
    """
    model_config = ConfigDict(frozen=True)

    cost_budget: Optional[float] = Field(
        default=None,
        description="비용 상한 (통화 단위)",
        examples=[0.05]
    )
    latency_target_ms: Optional[float] = Field(
        default=None,
        description="지연 시간 목표 (ms)",
        examples=[3000]
    )
    quality_threshold: Optional[float] = Field(
        default=None,
        description="요구 품질 (0-100)",
        examples=[85]
    )


class EvaluationRequest(BaseModel):
    """
    평가 요청 스키마

    제출 이후에는 변경되지 않습니다 (frozen).
    dimensions 순서는 실행 순서로 그대로 유지됩니다.
    """
    model_config = ConfigDict(
        frozen=True,
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "content": {"title": "신규 기능 PRD", "body": "..."},
                "dimensions": ["content-quality", "market-research"],
                "tier": "standard",
                "constraints": {"cost_budget": 0.05, "latency_target_ms": 3000},
                "caching_enabled": True,
                "priority": "normal",
            }
        }
    )

    request_id: str = Field(
        default_factory=lambda: uuid.uuid4().hex,
        description="요청 ID"
    )
    content: Any = Field(description="평가 대상 (JSON 직렬화 가능한 임의 값)")
    dimensions: list[str] = Field(
        default_factory=list,
        description="평가 차원 목록 (순서 유지)",
        examples=[["content-quality", "strategic-soundness"]]
    )
    tier: EvaluationTier = Field(
        default=EvaluationTier.STANDARD,
        description="평가 등급: quick/standard/comprehensive"
    )
    constraints: EvaluationConstraints = Field(
        default_factory=EvaluationConstraints,
        description="비용/지연/품질 제약"
    )
    caching_enabled: bool = Field(
        default=True,
        description="캐시 사용 여부"
    )
    cache_ttl_hours: Optional[float] = Field(
        default=None,
        description="요청별 캐시 TTL (없으면 캐시 기본값)"
    )
    priority: Priority = Field(
        default=Priority.NORMAL,
        description="요청 우선순위"
    )
