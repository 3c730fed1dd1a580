"""
Metrics Collection
Prometheus metrics for builder edits and code generation
"""

import time
from contextlib import contextmanager
from typing import Callable

from prometheus_client import Counter, Histogram, generate_latest


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the builder core.
    """

    def __init__(self) -> None:
        # Node store
        self.store_mutations_total = Counter(
            "studio_store_mutations_total",
            "Total number of node store mutations",
            ["operation", "status"],
        )

        # History
        self.history_checkpoints_total = Counter(
            "studio_history_checkpoints_total",
            "Total number of history checkpoints",
        )
        self.history_steps_total = Counter(
            "studio_history_steps_total",
            "Total number of undo/redo steps applied",
            ["direction"],
        )

        # Code generation
        self.generation_total = Counter(
            "studio_generation_total",
            "Total number of code generation runs",
            ["status"],
        )
        self.generation_duration = Histogram(
            "studio_generation_duration_seconds",
            "Code generation duration in seconds",
            buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
        )
        self.generated_files = Histogram(
            "studio_generated_files",
            "Number of files emitted per generation run",
            buckets=[5, 10, 25, 50, 100, 250, 500, 1000],
        )
        self.generation_fallbacks_total = Counter(
            "studio_generation_fallbacks_total",
            "Placeholder files emitted instead of a component template",
            ["reason"],
        )

    def record_mutation(self, operation: str, status: str) -> None:
        """Record a node store mutation attempt."""
        self.store_mutations_total.labels(operation=operation, status=status).inc()

    def record_checkpoint(self) -> None:
        self.history_checkpoints_total.inc()

    def record_history_step(self, direction: str) -> None:
        self.history_steps_total.labels(direction=direction).inc()

    def record_generation(self, status: str, duration: float, file_count: int = 0) -> None:
        """Record a code generation run."""
        self.generation_total.labels(status=status).inc()
        self.generation_duration.observe(duration)
        if file_count:
            self.generated_files.observe(file_count)

    def record_fallback(self, reason: str) -> None:
        self.generation_fallbacks_total.labels(reason=reason).inc()

    @contextmanager
    def measure_duration(self, callback: Callable[[float], None]):
        """Context manager to measure operation duration."""
        start = time.time()
        try:
            yield
        finally:
            callback(time.time() - start)

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format."""
        return generate_latest()


# Global metrics collector instance
metrics_collector = MetricsCollector()
