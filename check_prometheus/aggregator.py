"""Aggregation of a verdict into the check outcome."""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

from check_prometheus.evaluator import Verdict

CONCAT_WARNING_PREFIX = "\nWARNING: "


class Severity(IntEnum):
    """Monitoring-plugin severities; the value is the process exit code."""
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


@dataclass(frozen=True)
class Report:
    """A single notification emitted by the check."""
    severity: Severity
    message: str


@dataclass
class CheckOutcome:
    """Terminal severity plus every report to emit, in order."""
    severity: Severity
    message: str
    reports: List[Report] = field(default_factory=list)


def aggregate(verdict: Verdict, concat_output: bool = False) -> CheckOutcome:
    """
    Merge the per-tier messages into the check outcome.

    Fatal and error violations both report as critical, fatal taking
    precedence for the message body. Warnings are always reported on their
    own channel; with ``concat_output`` they are also appended to a critical
    body, as are error messages to a fatal body.
    """
    fatal_text = "\n".join(verdict.fatal)
    error_text = "\n".join(verdict.error)
    warning_text = "\n".join(verdict.warning)

    reports: List[Report] = []

    critical_text = None
    if verdict.fatal:
        critical_text = fatal_text
        if concat_output and verdict.error:
            critical_text += "\n" + error_text
    elif verdict.error:
        critical_text = error_text

    if critical_text is not None:
        if concat_output and verdict.warning:
            critical_text += CONCAT_WARNING_PREFIX + warning_text
        reports.append(Report(Severity.CRITICAL, critical_text))

    if verdict.warning:
        reports.append(Report(Severity.WARNING, warning_text))

    if not reports:
        return CheckOutcome(Severity.OK, "", [Report(Severity.OK, "")])

    primary = reports[0]
    return CheckOutcome(primary.severity, primary.message, reports)
