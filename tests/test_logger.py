from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from numisma.importing.types import FieldError, ImportResult
from numisma.logging import HumanLogger


class ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(record.getMessage())


@pytest.fixture
def captured() -> ListHandler:
    handler = ListHandler()
    logger = logging.getLogger("numisma")
    logger.addHandler(handler)
    yield handler
    logger.removeHandler(handler)


def test_import_lines(captured: ListHandler) -> None:
    human = HumanLogger("INFO")
    ok = ImportResult.ok(SimpleNamespace(id="p1", name="Main"))
    failed = ImportResult.fail(
        "Validation failed",
        (
            FieldError(path="name", message="Field required", code="missing"),
            FieldError(path="status", message="Input should be 'active'", code="enum"),
        ),
    )

    human.import_result("#0", ok)
    human.import_result("#1", failed)

    assert captured.lines == [
        "import | #0 | ok | id p1 | Main",
        "import | #1 | failed | Validation failed | fields name, status",
    ]


def test_metric_lines_use_currency_formatting(captured: ListHandler) -> None:
    human = HumanLogger("INFO", currency="USD")

    human.performance("all", 65000, 6000, 10.17)
    human.allocation("BTC", 50000, 76.92)
    human.risk(6.5, -1200, 87.2)
    human.batch_summary(3, 2, 1)

    assert captured.lines == [
        "performance | all | value $65,000.00 | pnl +$6,000.00 | return +10.17%",
        "allocation | BTC | $50,000.00 | 76.92%",
        "risk | avg_level 6.5 | max_drawdown -$1,200.00 | volatility 87.2",
        "batch | total 3 | ok 2 | failed 1",
    ]


def test_error_lines(captured: ListHandler) -> None:
    human = HumanLogger("INFO")

    human.error("BACKUP_FORMAT_ERROR | Invalid JSON")

    assert captured.lines == ["error | BACKUP_FORMAT_ERROR | Invalid JSON"]


def test_level_filters_info_lines(captured: ListHandler) -> None:
    human = HumanLogger("ERROR")

    human.report("reports/p1_report.html")
    human.error("boom")

    assert captured.lines == ["error | boom"]
