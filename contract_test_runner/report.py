"""Reporting of test run summaries."""

import logging
from typing import Any

from contract_test_runner.felt import format_felt
from contract_test_runner.models.result import RunOutcome, RunSuccess, TestsSummary


def describe_failure(outcome: RunOutcome) -> str:
    """Explain why a test with the given outcome failed."""
    if isinstance(outcome, RunSuccess):
        return "expected panic but finished successfully."
    values = ", ".join(format_felt(value) for value in outcome.values)
    return f"panicked with [{values}]."


def summary_line(summary: TestsSummary, filtered_out: int) -> str:
    """One-line result of a run, e.g. ``test result: ok. 3 passed; ...``."""
    result = "ok" if not summary.failed else "FAILED"
    return (
        f"test result: {result}. {len(summary.passed)} passed; "
        f"{len(summary.failed)} failed; {len(summary.ignored)} ignored; "
        f"{filtered_out} filtered out;"
    )


def log_results_summary(
    log: logging.Logger, summary: TestsSummary, filtered_out: int
) -> None:
    """Log the failures of a run, if any, then its result line."""
    if not summary.failed:
        log.info("%s", summary_line(summary, filtered_out))
        return

    log.info("failures:")
    for name, outcome in zip(summary.failed, summary.failed_run_results, strict=True):
        log.info("   %s - %s", name, describe_failure(outcome))
    log.error("%s", summary_line(summary, filtered_out))


def format_output(summary: TestsSummary, filtered_out: int) -> dict[str, Any]:
    """Format a summary for JSON output."""
    failures: list[dict[str, Any]] = []
    for name, outcome in zip(summary.failed, summary.failed_run_results, strict=True):
        failures.append(
            {
                "name": name,
                "outcome": "success" if isinstance(outcome, RunSuccess) else "panic",
                "values": [str(value) for value in outcome.values],
                "message": describe_failure(outcome),
            }
        )

    return {
        "ok": not summary.failed,
        "passed": len(summary.passed),
        "failed": len(summary.failed),
        "ignored": len(summary.ignored),
        "filtered_out": filtered_out,
        "total": (
            len(summary.passed)
            + len(summary.failed)
            + len(summary.ignored)
            + filtered_out
        ),
        "failures": sorted(failures, key=lambda f: f["name"]),
    }
