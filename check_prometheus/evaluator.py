"""Threshold evaluation of series last values."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List
import logging

from check_prometheus.exceptions import BackendError
from check_prometheus.fetcher import SeriesFetcher
from check_prometheus.series import last_values

logger = logging.getLogger(__name__)


class Tier(str, Enum):
    """Threshold tiers."""
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


# Evaluation order, highest priority first
TIER_PRIORITY = (Tier.FATAL, Tier.ERROR, Tier.WARNING)


class Direction(str, Enum):
    """Comparison polarity applied to every tier."""
    GREATER_THAN = "greater"
    LESS_THAN = "less"

    def violates(self, value: float, threshold: float) -> bool:
        """Strict comparison; equality never violates."""
        if self is Direction.GREATER_THAN:
            return value > threshold
        return threshold > value


@dataclass
class Verdict:
    """Violation messages per tier."""
    warning: List[str] = field(default_factory=list)
    error: List[str] = field(default_factory=list)
    fatal: List[str] = field(default_factory=list)
    series_count: int = 0  # series returned by the query

    def messages(self, tier: Tier) -> List[str]:
        """Return the message list of a tier."""
        return getattr(self, tier.value)

    def is_empty(self) -> bool:
        return not (self.warning or self.error or self.fatal)


def violation_message(identifier: str, value: float, direction: Direction, threshold: str) -> str:
    """Render the human-readable message of a violation."""
    return (
        f"The metric {identifier} is {value} that is {direction.value} "
        f"than max allowed {threshold}"
    )


class ThresholdEvaluator:
    """Evaluates the latest value of each series against a threshold set."""

    def __init__(self, fetcher: SeriesFetcher, short_output: bool = False):
        self.fetcher = fetcher
        self.short_output = short_output

    def evaluate(self, query: str, thresholds, direction: Direction) -> Verdict:
        """
        Evaluate a query against the configured tiers.

        Args:
            query: PromQL expression
            thresholds: ThresholdSet with the configured tiers
            direction: Comparison polarity

        Returns:
            Verdict with messages for every violated tier
        """
        verdict = Verdict()

        try:
            series_list = self.fetcher.fetch(query)
        except BackendError as e:
            logger.warning(f"No usable data for query '{query}': {e}")
            return verdict

        verdict.series_count = len(series_list)
        if not series_list:
            logger.info(f"Query '{query}' returned no series")
            return verdict

        limits: Dict[Tier, float] = thresholds.limits()

        for series in series_list:
            last = last_values(series, 1)
            if not last:
                logger.debug(f"Series {series.identifier} has no value, skipping")
                continue

            value = last[0].value
            for tier in TIER_PRIORITY:
                if tier not in limits:
                    continue

                if not direction.violates(value, limits[tier]):
                    continue

                verdict.messages(tier).append(
                    violation_message(series.identifier, value, direction, thresholds.raw(tier))
                )
                if self.short_output:
                    break

        logger.info(
            f"Evaluated {len(series_list)} series: "
            f"{len(verdict.fatal)} fatal, {len(verdict.error)} error, "
            f"{len(verdict.warning)} warning"
        )
        return verdict
