"""Data structures for fetched time series and last-value extraction."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Sample:
    """A single sample. A value of None means no data at this instant."""
    value: Optional[float]
    timestamp: int  # milliseconds


@dataclass(frozen=True)
class Series:
    """A named series with its samples, oldest first."""
    identifier: str
    samples: Tuple[Sample, ...] = field(default_factory=tuple)


def series_identifier(labels: Dict[str, str], fallback_name: str = "") -> str:
    """
    Render a series identifier as ``name{k="v",k2="v2"}``.

    Labels keep the order they were received in and ``__name__`` is used as
    the base. The braces are only appended when at least one non-name label
    exists.

    Args:
        labels: Metric labels as returned by the backend
        fallback_name: Base used when the metric carries no ``__name__``

    Returns:
        Series identifier string
    """
    name = labels.get("__name__") or fallback_name
    rendered = ",".join(
        f'{key}="{value}"'
        for key, value in labels.items()
        if key != "__name__"
    )
    if rendered:
        return f"{name}{{{rendered}}}"
    return name


def last_values(series: Series, count: int = 1) -> List[Sample]:
    """
    Return up to ``count`` most recent non-null samples, newest first.

    Null samples are skipped and do not consume the count.
    """
    result: List[Sample] = []
    remaining = count
    index = len(series.samples)

    while remaining > 0 and index > 0:
        index -= 1
        sample = series.samples[index]
        if sample.value is None:
            continue
        result.append(sample)
        remaining -= 1

    return result
