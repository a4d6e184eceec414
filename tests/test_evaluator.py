"""Tests for threshold evaluation."""
import pytest

from check_prometheus.config import ThresholdSet
from check_prometheus.evaluator import (
    TIER_PRIORITY, Direction, ThresholdEvaluator, Tier, Verdict,
)
from check_prometheus.exceptions import BackendError, TransportError
from check_prometheus.series import Sample, Series


class MockFetcher:
    """Fetcher returning fixed series, or raising a fixed error."""

    def __init__(self, series=None, error=None):
        self.series = series or []
        self.error = error

    def fetch(self, query):
        if self.error is not None:
            raise self.error
        return list(self.series)


def single(value, identifier='load{host="a"}'):
    return [Series(identifier, (Sample(value, 1000),))]


def evaluate(series, thresholds="10,20,30", direction=Direction.LESS_THAN, short_output=False):
    evaluator = ThresholdEvaluator(MockFetcher(series), short_output=short_output)
    return evaluator.evaluate("load", ThresholdSet.from_string(thresholds), direction)


def test_tier_priority_is_fatal_error_warning():
    assert TIER_PRIORITY == (Tier.FATAL, Tier.ERROR, Tier.WARNING)


def test_less_than_value_below_every_threshold_fires_all_tiers():
    """Less-than violates when the threshold is greater than the value."""
    verdict = evaluate(single(5.0))

    assert verdict.fatal == ['The metric load{host="a"} is 5.0 that is less than max allowed 30']
    assert verdict.error == ['The metric load{host="a"} is 5.0 that is less than max allowed 20']
    assert verdict.warning == ['The metric load{host="a"} is 5.0 that is less than max allowed 10']


def test_less_than_value_above_every_threshold_is_clean():
    verdict = evaluate(single(35.0))
    assert verdict.is_empty()


def test_less_than_only_fatal_fires():
    verdict = evaluate(single(25.0))

    assert verdict.fatal == ['The metric load{host="a"} is 25.0 that is less than max allowed 30']
    assert verdict.error == []
    assert verdict.warning == []


def test_greater_than_fires_warning_and_error():
    verdict = evaluate(single(25.0), direction=Direction.GREATER_THAN)

    assert verdict.fatal == []
    assert verdict.error == ['The metric load{host="a"} is 25.0 that is greater than max allowed 20']
    assert verdict.warning == ['The metric load{host="a"} is 25.0 that is greater than max allowed 10']


@pytest.mark.parametrize("direction", [Direction.GREATER_THAN, Direction.LESS_THAN])
def test_equality_never_violates(direction):
    verdict = evaluate(single(20.0), thresholds=",20,", direction=direction)
    assert verdict.is_empty()


def test_direction_comparisons_are_strict():
    assert Direction.GREATER_THAN.violates(2.0, 1.0)
    assert not Direction.GREATER_THAN.violates(1.0, 1.0)
    assert Direction.LESS_THAN.violates(1.0, 2.0)
    assert not Direction.LESS_THAN.violates(2.0, 2.0)


def test_short_output_stops_at_first_tier():
    verdict = evaluate(single(35.0), direction=Direction.GREATER_THAN, short_output=True)

    assert len(verdict.fatal) == 1
    assert verdict.error == []
    assert verdict.warning == []


def test_series_can_populate_several_tiers():
    verdict = evaluate(single(35.0), thresholds="10,,30", direction=Direction.GREATER_THAN)

    assert len(verdict.fatal) == 1
    assert verdict.error == []
    assert len(verdict.warning) == 1


def test_absent_tiers_are_skipped():
    verdict = evaluate(single(100.0), thresholds="50", direction=Direction.GREATER_THAN)

    assert len(verdict.warning) == 1
    assert verdict.error == [] and verdict.fatal == []


def test_series_without_value_are_skipped():
    series = [
        Series("empty", (Sample(None, 1000),)),
        Series("none"),
        Series("busy", (Sample(50.0, 1000), Sample(None, 2000))),
    ]
    verdict = evaluate(series, thresholds="10", direction=Direction.GREATER_THAN)

    assert verdict.warning == ["The metric busy is 50.0 that is greater than max allowed 10"]


def test_messages_keep_series_order():
    series = single(40.0, "b") + single(50.0, "a") + single(5.0, "c")
    verdict = evaluate(series, thresholds="30", direction=Direction.GREATER_THAN)

    assert [m.split()[2] for m in verdict.warning] == ["b", "a"]


def test_threshold_string_is_rendered_as_configured():
    verdict = evaluate(single(1.0), thresholds=" 2.50 ")
    assert verdict.warning[0].endswith("max allowed 2.50")


def test_nan_value_never_violates():
    verdict = evaluate(single(float("nan")), direction=Direction.GREATER_THAN)
    assert verdict.is_empty()


def test_empty_fetch_gives_empty_verdict():
    assert evaluate([]) == Verdict()


def test_verdict_counts_returned_series():
    series = single(1.0, "a") + [Series("b")]
    assert evaluate(series).series_count == 2


def test_backend_error_is_treated_as_no_data():
    evaluator = ThresholdEvaluator(MockFetcher(error=BackendError("status error")))
    verdict = evaluator.evaluate("up", ThresholdSet.from_string("1,2,3"), Direction.LESS_THAN)
    assert verdict.is_empty()


def test_transport_error_propagates():
    evaluator = ThresholdEvaluator(MockFetcher(error=TransportError("refused")))
    with pytest.raises(TransportError):
        evaluator.evaluate("up", ThresholdSet.from_string("1,2,3"), Direction.LESS_THAN)
