"""Command-line entry point for the Prometheus threshold check."""
import argparse
import logging
import sys
import time
from typing import List, Optional

from check_prometheus.aggregator import CheckOutcome, Report, Severity, aggregate
from check_prometheus.check_metrics import CheckMetrics
from check_prometheus.config import CheckConfig, load_config
from check_prometheus.evaluator import ThresholdEvaluator, Verdict
from check_prometheus.exceptions import ConfigError, TransportError
from check_prometheus.fetcher import SeriesFetcher

CHECK_NAME = "CheckPrometheus"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str):
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr
    )

    # Reduce noise from some libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Boolean flags default to None so a config file can set them."""
    parser = argparse.ArgumentParser(
        description="Check the last value of a Prometheus query against thresholds"
    )
    parser.add_argument("--host", "-H", help="Prometheus host to connect to, include port")
    parser.add_argument("--query", "-q", help="The prometheus query")
    parser.add_argument(
        "--greater_than", "-g",
        action="store_true",
        default=None,
        help="Violate when the value is greater than the threshold instead of less than"
    )
    parser.add_argument(
        "--last", "-l",
        metavar="VALUE",
        help="Check the last value against warning,error,fatal thresholds"
    )
    parser.add_argument(
        "--concat_output", "-c",
        action="store_true",
        default=None,
        help="Include warning messages in output even if overall status is critical"
    )
    parser.add_argument(
        "--short_output", "-s",
        action="store_true",
        default=None,
        help="Report only the highest status per series in output"
    )
    parser.add_argument("--http-user", "-U", dest="http_user", metavar="USER", help="Basic HTTP authentication user")
    parser.add_argument(
        "--http-password", "-P",
        dest="http_password",
        metavar="PASSWORD",
        help="Basic HTTP authentication password"
    )
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds (default 10)")
    parser.add_argument("--config", help="Path to a YAML file with default option values")
    parser.add_argument(
        "--metrics-file",
        dest="metrics_file",
        help="Write check self-metrics to this file in Prometheus text format"
    )
    parser.add_argument("--log-level", dest="log_level", help="Logging level (default WARNING)")
    return parser


def run_check(
    config: CheckConfig,
    fetcher: Optional[SeriesFetcher] = None,
    metrics: Optional[CheckMetrics] = None
) -> CheckOutcome:
    """
    Run one evaluation and aggregate it.

    Without a ``last`` threshold set no query is issued and the outcome is OK.

    Raises:
        TransportError: The backend could not be reached
    """
    if config.last is None:
        logger.info("No last-value thresholds configured, nothing to check")
        return aggregate(Verdict())

    if fetcher is None:
        fetcher = SeriesFetcher(
            config.host,
            username=config.http_user,
            password=config.http_password,
            timeout=config.timeout
        )

    evaluator = ThresholdEvaluator(fetcher, short_output=config.short_output)
    verdict = evaluator.evaluate(config.query, config.last, config.direction)
    outcome = aggregate(verdict, concat_output=config.concat_output)

    if metrics:
        metrics.record_series(config.query, verdict.series_count)
        metrics.record_verdict(config.query, verdict)

    return outcome


def format_report(report: Report) -> str:
    """Render a report line the way monitoring plugins do."""
    line = f"{CHECK_NAME} {report.severity.name}"
    if report.message:
        line += f": {report.message}"
    return line


def emit(reports: List[Report]):
    """Print every report to standard output."""
    for report in reports:
        print(format_report(report))


def main(argv: Optional[List[str]] = None):
    """Main function."""
    args = build_parser().parse_args(argv)

    overrides = {
        key: value
        for key, value in vars(args).items()
        if key != "config"
    }

    try:
        config = load_config(overrides, config_path=args.config)
    except ConfigError as e:
        emit([Report(Severity.UNKNOWN, f"Invalid configuration: {e}")])
        sys.exit(int(Severity.UNKNOWN))

    setup_logging(config.log_level)

    metrics = CheckMetrics() if config.metrics_file else None
    start = time.time()

    try:
        outcome = run_check(config, metrics=metrics)
    except TransportError as e:
        message = f"Check failed to run: {e}"
        logger.error(message)
        outcome = CheckOutcome(Severity.CRITICAL, message, [Report(Severity.CRITICAL, message)])

    if metrics:
        metrics.record_duration(time.time() - start)
        metrics.record_status(config.query, outcome.severity)
        try:
            metrics.write(config.metrics_file)
        except OSError as e:
            logger.error(f"Failed to write check metrics: {e}")

    emit(outcome.reports)
    sys.exit(int(outcome.severity))


if __name__ == "__main__":
    main()
