"""
캐시 모듈
"""

from .cache_manager import EvaluationCache

__all__ = ["EvaluationCache"]
