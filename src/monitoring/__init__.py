"""
Monitoring
Prometheus-based metrics for the builder core
"""

from .metrics import MetricsCollector, metrics_collector

__all__ = [
    "MetricsCollector",
    "metrics_collector",
]
