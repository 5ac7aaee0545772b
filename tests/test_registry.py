"""
EvalLens 테스트 - Model Performance Registry
"""

import pytest
import sys
import threading
sys.path.insert(0, ".")

from app.domain.registry import ModelRegistry, RankObjective, SEED_PROFILES
from app.schemas.profile import ModelPerformanceProfile


class TestSeedDefaults:
    """기본 프로필 등록 테스트"""

    def test_seed_defaults(self):
        """기본 백엔드 5개 등록"""
        registry = ModelRegistry()

        assert registry.seed_defaults() == 5
        assert len(registry) == len(SEED_PROFILES)
        assert "gpt-4-turbo-preview" in registry

    def test_seed_defaults_keeps_existing(self):
        """이미 등록된 백엔드는 덮어쓰지 않음"""
        registry = ModelRegistry([
            ModelPerformanceProfile(
                backend_id="gpt-3.5-turbo",
                avg_cost_per_call=0.5,
                avg_latency_ms=100,
                accuracy_score=60,
                reliability_score=60,
            )
        ])

        assert registry.seed_defaults() == 4
        assert registry.get("gpt-3.5-turbo").avg_cost_per_call == 0.5

    def test_register_never_overwrites(self):
        registry = ModelRegistry.with_seed_defaults()
        registry.register(ModelPerformanceProfile(
            backend_id="gpt-4-turbo-preview",
            avg_cost_per_call=9.9,
            avg_latency_ms=1,
            accuracy_score=1,
            reliability_score=1,
        ))

        assert registry.get("gpt-4-turbo-preview").avg_cost_per_call == 0.03


class TestLookup:
    """프로필 조회 테스트"""

    def setup_method(self):
        self.registry = ModelRegistry.with_seed_defaults()

    def test_unknown_backend_conservative_default(self):
        """미등록 백엔드는 오류 대신 보수적 기본값"""
        profile = self.registry.get("no-such-backend")

        assert profile.backend_id == "no-such-backend"
        assert profile.accuracy_score == 50
        assert profile.reliability_score == 50
        assert "no-such-backend" not in self.registry

    def test_get_returns_snapshot(self):
        """조회 결과를 바꿔도 레지스트리는 그대로"""
        snapshot = self.registry.get("gpt-3.5-turbo")
        snapshot.avg_cost_per_call = 100

        assert self.registry.get("gpt-3.5-turbo").avg_cost_per_call == 0.002

    def test_estimate_cost(self):
        """400자 → 100토큰 → 100 / 500000 * 1.5"""
        cost = self.registry.estimate_cost("gpt-3.5-turbo", 400)

        assert cost == pytest.approx(0.0003)


class TestRecordOutcome:
    """EMA 학습 테스트"""

    def setup_method(self):
        self.registry = ModelRegistry.with_seed_defaults()

    def test_ema_update(self):
        """비용/지연/신뢰도 α=0.1"""
        assert self.registry.record_outcome("gpt-4-turbo-preview", 0.01, 1000, success=False)

        profile = self.registry.get("gpt-4-turbo-preview")
        assert profile.avg_cost_per_call == pytest.approx(0.028)
        assert profile.avg_latency_ms == pytest.approx(2800)
        assert profile.reliability_score == pytest.approx(88.2)

    def test_accuracy_blends_score_and_confidence(self):
        """정확도 α=0.05, 관측값 = (score + confidence) / 2"""
        self.registry.record_outcome(
            "gpt-4-turbo-preview", 0.03, 3000, success=True, score=80, confidence=60
        )

        assert self.registry.get("gpt-4-turbo-preview").accuracy_score == pytest.approx(89.0)

    def test_accuracy_unchanged_without_score(self):
        self.registry.record_outcome("gpt-4-turbo-preview", 0.03, 3000, success=False)

        assert self.registry.get("gpt-4-turbo-preview").accuracy_score == 90

    def test_cost_converges_monotonically(self):
        """동일 비용 반복 관측 시 단조 수렴"""
        target = 0.01
        previous = self.registry.get("claude-3-opus-20240229").avg_cost_per_call

        for _ in range(50):
            self.registry.record_outcome("claude-3-opus-20240229", target, 4000, success=True)
            current = self.registry.get("claude-3-opus-20240229").avg_cost_per_call
            assert target <= current <= previous
            previous = current

        assert previous == pytest.approx(target, abs=0.001)

    def test_unknown_backend_ignored(self):
        assert self.registry.record_outcome("no-such-backend", 0.1, 100, success=True) is False
        assert "no-such-backend" not in self.registry


class TestRank:
    """정렬 테스트"""

    def setup_method(self):
        self.registry = ModelRegistry.with_seed_defaults()

    def test_rank_by_cost(self):
        assert self.registry.rank(RankObjective.COST, 2) == [
            "claude-3-haiku-20240307",
            "gpt-3.5-turbo",
        ]

    def test_rank_by_latency(self):
        ranked = self.registry.rank(RankObjective.LATENCY)

        assert ranked[0] == "claude-3-haiku-20240307"
        assert ranked[-1] == "claude-3-opus-20240229"

    def test_rank_by_accuracy_descending(self):
        assert self.registry.rank(RankObjective.ACCURACY, 3) == [
            "claude-3-opus-20240229",
            "gpt-4-turbo-preview",
            "claude-3-sonnet-20240229",
        ]

    def test_rank_skips_unknown(self):
        """미등록 ID는 건너뜀"""
        ranked = self.registry.rank(
            "cost", backend_ids=["unknown-a", "gpt-4-turbo-preview", "gpt-3.5-turbo"]
        )

        assert ranked == ["gpt-3.5-turbo", "gpt-4-turbo-preview"]

    def test_rank_follows_learning(self):
        """학습된 비용이 정렬에 반영"""
        for _ in range(100):
            self.registry.record_outcome("claude-3-opus-20240229", 0.0001, 4000, success=True)

        assert self.registry.rank(RankObjective.COST, 1) == ["claude-3-opus-20240229"]


class TestConcurrentUpdates:
    """동시 갱신 테스트"""

    def test_parallel_record_outcome_keeps_every_update(self):
        """8개 스레드 x 5회 갱신 → 40회 EMA가 모두 반영됨 (유실 시 감쇠 지수가 달라짐)"""
        registry = ModelRegistry.with_seed_defaults()
        errors = []
        barrier = threading.Barrier(8)

        def worker():
            try:
                barrier.wait()
                for _ in range(5):
                    registry.record_outcome("gpt-4-turbo-preview", 0.01, 1000, success=True)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        decay = 0.9 ** 40
        profile = registry.get("gpt-4-turbo-preview")
        assert errors == []
        assert profile.avg_cost_per_call == pytest.approx(0.01 + (0.03 - 0.01) * decay)
        assert profile.avg_latency_ms == pytest.approx(1000 + (3000 - 1000) * decay)
        assert profile.reliability_score == pytest.approx(100 - (100 - 98) * decay)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
