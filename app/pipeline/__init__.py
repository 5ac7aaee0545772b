"""
EvalLens 파이프라인 패키지
"""

from .orchestrator import EvaluationOrchestrator, new_evaluation_id
from .scheduler import MaintenanceScheduler

__all__ = [
    "EvaluationOrchestrator",
    "new_evaluation_id",
    "MaintenanceScheduler",
]
