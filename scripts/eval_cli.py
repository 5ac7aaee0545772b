#!/usr/bin/env python
"""
EvalLens 평가 CLI

사용법:
    python scripts/eval_cli.py evaluate doc.json                    # standard 평가 (기본 차원)
    python scripts/eval_cli.py evaluate doc.json market-research    # 차원 지정
    python scripts/eval_cli.py quick doc.json                       # 빠른 평가
    python scripts/eval_cli.py comprehensive doc.json               # 종합 평가
    python scripts/eval_cli.py profiles                             # 백엔드 프로필
    python scripts/eval_cli.py report                               # 성능 리포트
"""

import json
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.config import settings, setup_logging
from app.domain.preferences import DimensionPreferences
from app.errors import ConfigurationError
from app.llm import HttpBackendClient
from app.pipeline import EvaluationOrchestrator
from app.schemas import EvaluationRequest, EvaluationResult


DEFAULT_DIMENSIONS = ["content-quality"]


def load_content(path: str):
    """평가 대상 JSON 로드"""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def print_result(result: EvaluationResult):
    """평가 결과 출력"""
    print("=" * 60)
    print(f"📊 평가 결과 ({result.evaluation_id})")
    print("=" * 60)
    print(f"  전략: {result.strategy_name}  등급: {result.tier}")
    print(f"  전체 점수: {result.overall_score:.1f}  신뢰도: {result.confidence:.1f}")
    print(f"  비용: ${result.actual_cost:.4f}  (예산 사용률 {result.budget_utilization_pct}%)")
    print(f"  소요 시간: {result.actual_latency_ms:.0f}ms  캐시: {'✅' if result.cache_hit else '❌'}")

    if result.dimension_scores:
        print("-" * 60)
        print(f"{'차원':<28} {'점수':<8} {'신뢰도':<8} {'백엔드'}")
        for dimension, dim_result in result.dimension_scores.items():
            print(
                f"  {dimension:<26} "
                f"{dim_result.score:<8.1f} "
                f"{dim_result.confidence:<8.1f} "
                f"{dim_result.backend_used}"
            )

    if result.fallbacks_used:
        print("-" * 60)
        print(f"⚠️  폴백/중단: {', '.join(result.fallbacks_used)}")

    if result.recommendations:
        print("-" * 60)
        print("💡 권고")
        for rec in result.recommendations:
            print(f"  [{rec.impact}] {rec.suggestion}")

    print("=" * 60)


def cmd_evaluate(orchestrator: EvaluationOrchestrator, path: str, dimensions: list[str]):
    request = EvaluationRequest(
        content=load_content(path),
        dimensions=dimensions or DEFAULT_DIMENSIONS,
    )
    print_result(orchestrator.evaluate(request))


def cmd_quick(orchestrator: EvaluationOrchestrator, path: str, dimensions: list[str]):
    print_result(orchestrator.quick_evaluate(load_content(path), dimensions or None))


def cmd_comprehensive(orchestrator: EvaluationOrchestrator, path: str):
    print_result(orchestrator.comprehensive_evaluate(load_content(path)))


def cmd_profiles(orchestrator: EvaluationOrchestrator):
    """백엔드 프로필 출력"""
    print("=" * 72)
    print("🤖 백엔드 성능 프로필")
    print("=" * 72)
    print(f"{'백엔드':<28} {'비용':<10} {'지연(ms)':<10} {'정확도':<8} {'신뢰도':<8}")
    print("-" * 72)
    for profile in orchestrator.get_model_profiles():
        print(
            f"  {profile.backend_id:<26} "
            f"{profile.avg_cost_per_call:<10.4f} "
            f"{profile.avg_latency_ms:<10.0f} "
            f"{profile.accuracy_score:<8.1f} "
            f"{profile.reliability_score:<8.1f}"
        )
    print("=" * 72)


def cmd_report(orchestrator: EvaluationOrchestrator):
    """성능 리포트 출력"""
    report = orchestrator.get_performance_report()
    summary = report.summary

    print("=" * 40)
    print("📈 EvalLens 성능 리포트")
    print("=" * 40)
    print(f"  평가 수: {summary.total_evaluations}")
    print(f"  총 비용: ${summary.total_cost_spent:.4f}")
    print(f"  평가당 비용: ${summary.avg_cost_per_evaluation:.4f}")
    print(f"  캐시 적중률: {summary.cache_hit_rate_pct:.1f}%")
    print(f"  추적 백엔드: {summary.models_tracked}개")
    for line in report.recommendations:
        print(f"  💡 {line}")
    print("=" * 40)


def print_help():
    """도움말 출력"""
    print(__doc__)
    preferences = DimensionPreferences.load(settings.DIMENSION_PREFERENCES_PATH)
    print("\n기본 차원:")
    print("  " + ", ".join(preferences.dimensions()))
    print("\n백엔드 주소는 .env의 BACKEND_BASE_URL 참조")


def main():
    if len(sys.argv) < 2:
        print_help()
        return

    command = sys.argv[1].lower()

    if command in ["help", "-h", "--help"]:
        print_help()
        return

    needs_file = command in ["evaluate", "quick", "comprehensive"]
    if needs_file and len(sys.argv) < 3:
        print(f"❌ 평가할 JSON 파일을 지정하세요: {command} <file.json>")
        return

    if command not in ["evaluate", "quick", "comprehensive", "profiles", "report"]:
        print(f"❌ 알 수 없는 명령: {command}")
        print_help()
        return

    setup_logging()

    with EvaluationOrchestrator(HttpBackendClient()) as orchestrator:
        try:
            if command == "evaluate":
                cmd_evaluate(orchestrator, sys.argv[2], sys.argv[3:])
            elif command == "quick":
                cmd_quick(orchestrator, sys.argv[2], sys.argv[3:])
            elif command == "comprehensive":
                cmd_comprehensive(orchestrator, sys.argv[2])
            elif command == "profiles":
                cmd_profiles(orchestrator)
            elif command == "report":
                cmd_report(orchestrator)
        except ConfigurationError as e:
            print(f"❌ 평가를 시작할 수 없습니다: {e}")


if __name__ == "__main__":
    main()
