"""
결과 종합 엔진
차원별 결과를 전체 점수/신뢰도와 권고 목록으로 합칩니다.
"""

from typing import Optional

from app.schemas.request import EvaluationRequest
from app.schemas.results import (
    DimensionResult,
    EvaluationResult,
    Impact,
    Recommendation,
)


class ResultSynthesizer:
    """
    규칙 기반 결과 종합기

    - overall_score: 존재하는 차원 점수의 산술 평균 (반올림 없음, 없으면 0)
    - confidence: 존재하는 차원 신뢰도의 산술 평균 (없으면 0)
    - budget_utilization_pct: 예산 설정 시 actual_cost / cost_budget * 100
    """

    MAX_RECOMMENDATIONS = 8
    IMPROVEMENT_SCORE = 70       # 미만이면 개선 권고
    HIGH_IMPACT_SCORE = 50       # 미만이면 high impact
    COST_WARNING_RATIO = 0.8     # 차원당 평균 비용 / 예산
    LOW_CONFIDENCE = 60

    def synthesize(
        self,
        evaluation_id: str,
        request: EvaluationRequest,
        strategy_name: str,
        dimension_scores: dict[str, DimensionResult],
        actual_cost: float,
        actual_latency_ms: float,
        backends_used: list[str],
        fallbacks_used: list[str],
    ) -> EvaluationResult:
        """
        최종 결과 생성

        Returns:
            EvaluationResult: 항상 완전한 결과
        """
        results = list(dimension_scores.values())

        overall = self._mean([r.score for r in results])
        confidence = self._mean([r.confidence for r in results])

        budget = request.constraints.cost_budget
        utilization = (actual_cost / budget * 100) if budget else 0.0

        return EvaluationResult(
            evaluation_id=evaluation_id,
            overall_score=overall,
            confidence=confidence,
            dimension_scores=dict(dimension_scores),
            actual_cost=actual_cost,
            actual_latency_ms=actual_latency_ms,
            backends_used=list(backends_used),
            cache_hit=False,
            strategy_name=strategy_name,
            tier=request.tier,
            budget_utilization_pct=round(utilization, 2),
            fallbacks_used=list(fallbacks_used),
            recommendations=self.recommend(dimension_scores, request),
        )

    def recommend(
        self,
        dimension_scores: dict[str, DimensionResult],
        request: EvaluationRequest,
    ) -> list[Recommendation]:
        """권고 생성 (개선 → 비용 → 평가 품질 순, 최대 8개)"""
        recommendations: list[Recommendation] = []

        # 1. 점수가 낮은 차원
        for dimension, result in dimension_scores.items():
            if result.score < self.IMPROVEMENT_SCORE:
                recommendations.append(Recommendation(
                    category=dimension,
                    suggestion=f"{dimension} 개선 필요: {result.reasoning}",
                    impact=Impact.HIGH if result.score < self.HIGH_IMPACT_SCORE else Impact.MEDIUM,
                    effort=Impact.MEDIUM,
                ))

        # 2. 비용 최적화 (요청 차원 수 기준 평균)
        cost_rec = self._cost_recommendation(dimension_scores, request)
        if cost_rec:
            recommendations.append(cost_rec)

        # 3. 신뢰도가 낮은 평가
        if any(r.confidence < self.LOW_CONFIDENCE for r in dimension_scores.values()):
            recommendations.append(Recommendation(
                category="evaluation-quality",
                suggestion="일부 평가의 신뢰도가 낮습니다 - 정확도가 높은 백엔드 사용을 고려하세요",
                impact=Impact.MEDIUM,
                effort=Impact.MEDIUM,
            ))

        return recommendations[:self.MAX_RECOMMENDATIONS]

    def _cost_recommendation(
        self,
        dimension_scores: dict[str, DimensionResult],
        request: EvaluationRequest,
    ) -> Optional[Recommendation]:
        budget = request.constraints.cost_budget
        if not budget or not request.dimensions:
            return None

        total = sum(r.observed_cost for r in dimension_scores.values())
        avg_cost = total / len(request.dimensions)
        if avg_cost <= budget * self.COST_WARNING_RATIO:
            return None

        return Recommendation(
            category="cost-optimization",
            suggestion="기본 평가에는 비용 효율적인 백엔드 사용을 고려하세요",
            impact=Impact.MEDIUM,
            effort=Impact.LOW,
        )

    @staticmethod
    def _mean(values: list[float]) -> float:
        if not values:
            return 0.0
        return sum(values) / len(values)
