"""
EvalLens 테스트 - Result Synthesizer
"""

import pytest
import sys
sys.path.insert(0, ".")

from app.domain.synthesis import ResultSynthesizer
from app.schemas.request import EvaluationRequest, EvaluationConstraints
from app.schemas.results import DimensionResult, Impact


def dim(score, confidence=80.0, cost=0.0, reasoning="근거") -> DimensionResult:
    return DimensionResult(
        score=score,
        confidence=confidence,
        reasoning=reasoning,
        backend_used="gpt-3.5-turbo",
        observed_cost=cost,
    )


def make_request(dimensions, cost_budget=None) -> EvaluationRequest:
    return EvaluationRequest(
        content={"title": "PRD"},
        dimensions=dimensions,
        constraints=EvaluationConstraints(cost_budget=cost_budget),
    )


class TestResultSynthesizer:
    """결과 종합 테스트"""

    def setup_method(self):
        self.synthesizer = ResultSynthesizer()

    def synthesize(self, scores, request, actual_cost=0.0, fallbacks=None):
        return self.synthesizer.synthesize(
            evaluation_id="eval_test",
            request=request,
            strategy_name="balanced",
            dimension_scores=scores,
            actual_cost=actual_cost,
            actual_latency_ms=1200,
            backends_used=["gpt-3.5-turbo"],
            fallbacks_used=fallbacks or [],
        )

    def test_means(self):
        scores = {"a": dim(80, 90), "b": dim(60, 50)}

        result = self.synthesize(scores, make_request(["a", "b"]))

        assert result.overall_score == 70.0
        assert result.confidence == 70.0
        assert result.cache_hit is False
        assert result.strategy_name == "balanced"

    def test_overall_is_exact_mean(self):
        """전체 점수/신뢰도는 반올림 없는 산술 평균"""
        scores = {"a": dim(80), "b": dim(75), "c": dim(71)}

        result = self.synthesize(scores, make_request(["a", "b", "c"]))

        assert result.overall_score == pytest.approx(226 / 3)
        assert result.confidence == pytest.approx(80.0)

    def test_small_differences_survive(self):
        scores = {"a": dim(80.04, confidence=61.0), "b": dim(80.0, confidence=60.0)}

        result = self.synthesize(scores, make_request(["a", "b"]))

        assert result.overall_score == pytest.approx(80.02)
        assert result.confidence == pytest.approx(60.5)

    def test_empty(self):
        """평가된 차원이 없으면 0점, 권고 없음"""
        result = self.synthesize({}, make_request([]))

        assert result.overall_score == 0
        assert result.confidence == 0
        assert result.recommendations == []

    def test_budget_utilization(self):
        result = self.synthesize(
            {"a": dim(80, cost=0.03)}, make_request(["a"], cost_budget=0.05), actual_cost=0.03
        )

        assert result.budget_utilization_pct == pytest.approx(60.0)

    def test_no_budget_utilization(self):
        result = self.synthesize({"a": dim(80)}, make_request(["a"]), actual_cost=0.03)

        assert result.budget_utilization_pct == 0

    def test_improvement_impact(self):
        """70점 미만 개선 권고: 50점 미만은 high"""
        scores = {"weak": dim(40, reasoning="근거 부족"), "fair": dim(65), "good": dim(90)}

        recs = self.synthesizer.recommend(scores, make_request(list(scores)))

        assert [r.category for r in recs] == ["weak", "fair"]
        assert recs[0].impact == Impact.HIGH.value
        assert recs[1].impact == Impact.MEDIUM.value
        assert "근거 부족" in recs[0].suggestion

    def test_cost_recommendation(self):
        """차원당 평균 비용이 예산의 80% 초과"""
        scores = {"a": dim(90, cost=0.045)}

        recs = self.synthesizer.recommend(scores, make_request(["a"], cost_budget=0.05))

        assert len(recs) == 1
        assert recs[0].category == "cost-optimization"
        assert recs[0].effort == Impact.LOW.value

    def test_cost_averaged_over_requested_dimensions(self):
        """요청 차원 수로 나누므로 평가되지 않은 차원도 분모에 포함"""
        scores = {"a": dim(90, cost=0.045)}

        recs = self.synthesizer.recommend(scores, make_request(["a", "b"], cost_budget=0.05))

        assert recs == []

    def test_low_confidence_recommendation(self):
        scores = {"a": dim(90, confidence=40)}

        recs = self.synthesizer.recommend(scores, make_request(["a"]))

        assert [r.category for r in recs] == ["evaluation-quality"]

    def test_recommendation_order(self):
        scores = {"a": dim(40, confidence=30, cost=0.05)}

        recs = self.synthesizer.recommend(scores, make_request(["a"], cost_budget=0.05))

        assert [r.category for r in recs] == ["a", "cost-optimization", "evaluation-quality"]

    def test_recommendations_capped(self):
        scores = {f"dim-{i}": dim(30, confidence=20) for i in range(10)}

        recs = self.synthesizer.recommend(scores, make_request(list(scores)))

        assert len(recs) == 8


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
