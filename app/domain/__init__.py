"""
EvalLens 도메인 로직 패키지
백엔드 성능 학습, 전략 선택, 결과 종합 규칙을 담당합니다.
외부 백엔드 호출은 이 레이어에 관여하지 않습니다.
"""

from .registry import ModelRegistry, RankObjective
from .preferences import DimensionPreferences, COMPREHENSIVE_DIMENSIONS
from .strategy import StrategySelector
from .synthesis import ResultSynthesizer

__all__ = [
    "ModelRegistry",
    "RankObjective",
    "DimensionPreferences",
    "COMPREHENSIVE_DIMENSIONS",
    "StrategySelector",
    "ResultSynthesizer",
]
