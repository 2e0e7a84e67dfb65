"""Encoding of test results into wide-column cells.

Layout of the output table:

    Row key:  <test id>
    Family:   configured results family (``runs`` by default)
    Column:   <browser>-<version>-<os>-<os version>@<revision>#<created at>
    Value:    <status>#<message>$<subtest status>#<subtest message>

The ``#<message>`` parts are omitted when a message is missing or empty and
the ``$<subtest ...>`` part is omitted for tests without subtests.
"""

from collections.abc import Iterator, Sequence
from datetime import datetime

from results_loader.models.cell import EncodedCell
from results_loader.models.report import ResultReport, SubTestResult, TestResult
from results_loader.models.run import RunDescriptor

STATUS_MESSAGE_SEPARATOR = "#"
SUBTEST_SEPARATOR = "$"


def encode_status(status: str, message: str | None) -> str:
    """Join a status and an optional message."""
    if message:
        return f"{status}{STATUS_MESSAGE_SEPARATOR}{message}"
    return status


def encode_value(result: TestResult, subtest: SubTestResult | None = None) -> bytes:
    """Encode the cell value for a result and optionally one of its subtests."""
    value = encode_status(result.status, result.message)
    if subtest is not None:
        value = (
            f"{value}{SUBTEST_SEPARATOR}"
            f"{encode_status(subtest.status, subtest.message)}"
        )
    return value.encode("utf-8")


def encode_result(
    result: TestResult,
    run: RunDescriptor,
    *,
    family: str,
    timestamp: datetime,
) -> Sequence[EncodedCell]:
    """Encode one test result into cells.

    Tests without subtests produce a single cell. Tests with subtests
    produce one cell per subtest, all keyed by the parent test id, so
    subtests of the same test land on the same row and column and the
    store keeps the last one written.
    """
    column = run.run_id
    if not result.subtests:
        return [
            EncodedCell(
                row_key=result.test,
                family=family,
                column=column,
                timestamp=timestamp,
                value=encode_value(result),
            )
        ]

    return [
        EncodedCell(
            row_key=result.test,
            family=family,
            column=column,
            timestamp=timestamp,
            value=encode_value(result, subtest),
        )
        for subtest in result.subtests
    ]


def encode_report(
    report: ResultReport,
    run: RunDescriptor,
    *,
    family: str,
    timestamp: datetime,
) -> Iterator[EncodedCell]:
    """Encode every result of a report, in report order."""
    for result in report.results:
        yield from encode_result(result, run, family=family, timestamp=timestamp)
