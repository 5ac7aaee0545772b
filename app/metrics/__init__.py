"""
메트릭 모듈
"""

from .sink import MetricsSink, LoggingMetricsSink, InMemoryMetricsSink, MetricPoint

__all__ = [
    "MetricsSink",
    "LoggingMetricsSink",
    "InMemoryMetricsSink",
    "MetricPoint",
]
