"""
EvalLens 테스트 - Strategy Selector
"""

import json
import pytest
import sys
sys.path.insert(0, ".")

from app.domain.registry import ModelRegistry, SEED_PROFILES
from app.domain.preferences import DimensionPreferences
from app.domain.strategy import (
    StrategySelector,
    COST_OPTIMIZED,
    SPEED_OPTIMIZED,
    QUALITY_OPTIMIZED,
    BALANCED,
)
from app.schemas.profile import ModelPerformanceProfile
from app.schemas.request import EvaluationRequest, EvaluationConstraints


def make_request(dimensions=None, tier="standard", **constraints) -> EvaluationRequest:
    return EvaluationRequest(
        content={"title": "PRD"},
        dimensions=["content-quality"] if dimensions is None else dimensions,
        tier=tier,
        constraints=EvaluationConstraints(**constraints),
    )


class TestStrategyRules:
    """전략 결정 순서 테스트"""

    def setup_method(self):
        self.registry = ModelRegistry.with_seed_defaults()
        self.selector = StrategySelector(self.registry)

    def test_low_budget_is_cost_optimized(self):
        strategy = self.selector.select(make_request(cost_budget=0.05))

        assert strategy.name == COST_OPTIMIZED
        assert strategy.candidates == ["claude-3-haiku-20240307"]

    def test_tight_latency_is_speed_optimized(self):
        strategy = self.selector.select(make_request(latency_target_ms=3000))

        assert strategy.name == SPEED_OPTIMIZED
        assert strategy.candidates == ["claude-3-haiku-20240307"]

    def test_cost_rule_wins_over_latency(self):
        """예산과 지연 조건이 모두 있으면 비용 규칙이 먼저"""
        strategy = self.selector.select(make_request(cost_budget=0.05, latency_target_ms=1000))

        assert strategy.name == COST_OPTIMIZED

    def test_high_quality_is_quality_optimized(self):
        strategy = self.selector.select(make_request(quality_threshold=90))

        assert strategy.name == QUALITY_OPTIMIZED
        assert strategy.candidates == ["claude-3-opus-20240229"]

    def test_quality_threshold_boundary(self):
        """quality_threshold=85는 품질 규칙에 해당하지 않음"""
        strategy = self.selector.select(make_request(quality_threshold=85))

        assert strategy.name == BALANCED

    def test_large_budget_falls_through(self):
        strategy = self.selector.select(make_request(cost_budget=0.5, latency_target_ms=8000))

        assert strategy.name == BALANCED

    def test_tier_dispatch(self):
        assert self.selector.select(make_request(tier="quick")).name == SPEED_OPTIMIZED
        assert self.selector.select(make_request(tier="comprehensive")).name == QUALITY_OPTIMIZED
        assert self.selector.select(make_request(tier="standard")).name == BALANCED

    def test_candidate_count_capped(self):
        dimensions = ["a", "b", "c", "d", "e"]
        strategy = self.selector.select(make_request(dimensions=dimensions, cost_budget=0.05))

        assert len(strategy.candidates) == 3

    def test_empty_dimensions_still_has_candidate(self):
        strategy = self.selector.select(make_request(dimensions=[], cost_budget=0.05))

        assert len(strategy.candidates) == 1
        assert strategy.estimated_cost == 0


class TestBalancedStrategy:
    """balanced 전략 테스트"""

    def setup_method(self):
        self.registry = ModelRegistry.with_seed_defaults()
        self.selector = StrategySelector(self.registry)

    def test_dimension_mapping(self):
        strategy = self.selector.select(make_request(
            dimensions=["content-quality", "implementation-readiness", "brand-voice"]
        ))

        assert strategy.backend_for("content-quality") == "gpt-4-turbo-preview"
        assert strategy.backend_for("implementation-readiness") == "gpt-3.5-turbo"
        # 테이블에 없는 차원
        assert strategy.backend_for("brand-voice") == "gpt-3.5-turbo"
        assert strategy.candidates == ["gpt-4-turbo-preview", "gpt-3.5-turbo"]

    def test_skips_unregistered_preference(self):
        """선호 목록 중 레지스트리에 있는 첫 백엔드"""
        seeds = {s["backend_id"]: s for s in SEED_PROFILES}
        registry = ModelRegistry([
            ModelPerformanceProfile(**seeds["claude-3-opus-20240229"]),
            ModelPerformanceProfile(**seeds["claude-3-haiku-20240307"]),
        ])
        selector = StrategySelector(registry)

        strategy = selector.select(make_request(dimensions=["content-quality", "brand-voice"]))

        assert strategy.backend_for("content-quality") == "claude-3-opus-20240229"
        # fallback(gpt-3.5-turbo)도 없으면 매핑 없이 첫 후보 사용
        assert "brand-voice" not in strategy.dimension_backends
        assert strategy.backend_for("brand-voice") == "claude-3-opus-20240229"

    def test_estimates_parallel(self):
        """차원이 2개 이상이면 병렬 가능, 지연 = 최대값"""
        strategy = self.selector.select(make_request(
            dimensions=["content-quality", "implementation-readiness"]
        ))

        assert strategy.parallelizable
        assert strategy.estimated_cost == pytest.approx(0.032)
        assert strategy.estimated_latency_ms == 3000

    def test_estimates_single_dimension(self):
        strategy = self.selector.select(make_request(dimensions=["implementation-readiness"]))

        assert not strategy.parallelizable
        assert strategy.estimated_cost == pytest.approx(0.002)
        assert strategy.estimated_latency_ms == 1500

    def test_serial_latency_is_sum(self):
        strategy = self.selector.select(make_request(
            dimensions=["content-quality", "implementation-readiness"]
        ))
        strategy.parallelizable = False

        latency = self.selector.estimate_latency(
            strategy, ["content-quality", "implementation-readiness"]
        )

        assert latency == 4500


class TestDimensionPreferences:
    """선호도 테이블 테스트"""

    def test_default_table(self):
        preferences = DimensionPreferences()

        assert preferences.for_dimension("strategic-soundness")[0] == "claude-3-opus-20240229"
        assert preferences.for_dimension("unknown") == ["gpt-3.5-turbo"]

    def test_dimensions_lists_table_keys(self):
        """기본 테이블의 차원 5개를 등록 순서대로 반환"""
        assert DimensionPreferences().dimensions() == [
            "content-quality",
            "market-research",
            "strategic-soundness",
            "implementation-readiness",
            "technical-feasibility",
        ]
        assert DimensionPreferences(table={"custom": ["gpt-3.5-turbo"]}).dimensions() == ["custom"]

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_text(json.dumps({
            "preferences": {"content-quality": ["claude-3-haiku-20240307"]},
            "fallback": ["claude-3-sonnet-20240229"],
        }), encoding="utf-8")

        preferences = DimensionPreferences.load(str(path))
        selector = StrategySelector(ModelRegistry.with_seed_defaults(), preferences)
        strategy = selector.select(make_request(dimensions=["content-quality", "other"]))

        assert strategy.backend_for("content-quality") == "claude-3-haiku-20240307"
        assert strategy.backend_for("other") == "claude-3-sonnet-20240229"

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"fallback": []}), encoding="utf-8")

        with pytest.raises(ValueError):
            DimensionPreferences.from_file(str(path))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
