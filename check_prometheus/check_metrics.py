"""Self-monitoring metrics for a check run, written in Prometheus text format."""
from typing import Optional
import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, write_to_textfile

from check_prometheus.aggregator import Severity
from check_prometheus.evaluator import TIER_PRIORITY, Verdict

logger = logging.getLogger(__name__)


class CheckMetrics:
    """Metrics describing one check run."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, prefix: str = "check_prometheus_"):
        if registry is None:
            registry = CollectorRegistry()
        self.registry = registry

        self.duration_seconds = Gauge(
            f"{prefix}duration_seconds",
            "Duration of the check run in seconds",
            registry=registry
        )

        self.status = Gauge(
            f"{prefix}status",
            "Outcome severity (0 ok, 1 warning, 2 critical, 3 unknown)",
            ["query"],
            registry=registry
        )

        self.series_evaluated = Gauge(
            f"{prefix}series_evaluated",
            "Number of series returned by the query",
            ["query"],
            registry=registry
        )

        self.violations_total = Counter(
            f"{prefix}violations_total",
            "Threshold violations found by the check",
            ["query", "tier"],
            registry=registry
        )

    def record_duration(self, duration: float):
        """Record run duration."""
        self.duration_seconds.set(duration)

    def record_status(self, query: str, severity: Severity):
        """Record the outcome severity."""
        self.status.labels(query=query).set(int(severity))

    def record_series(self, query: str, count: int):
        """Record how many series were returned."""
        self.series_evaluated.labels(query=query).set(count)

    def record_verdict(self, query: str, verdict: Verdict):
        """Record violation counts per tier."""
        for tier in TIER_PRIORITY:
            self.violations_total.labels(query=query, tier=tier.value).inc(
                len(verdict.messages(tier))
            )

    def write(self, path: str):
        """Write all metrics to a textfile-collector file."""
        write_to_textfile(path, self.registry)
        logger.info(f"Check metrics written to {path}")
