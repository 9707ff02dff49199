from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

from numisma.domain.models import Portfolio
from numisma.importing.service import (
    import_from_file,
    import_from_json,
    import_multiple_from_file,
    import_multiple_from_json,
    import_position_record,
)
from numisma.importing.types import BatchSummary, FieldError, ImportOptions


def _portfolio_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": "p1",
        "name": "Test",
        "dateCreated": "2024-01-01",
        "currentValue": 1000,
        "initialInvestment": 1000,
        "profitLoss": 0,
        "returnPercentage": 0,
        "isPublic": False,
        "positionIds": [],
        "tags": ["test"],
        "status": "active",
        "userId": "user-1",
        "baseCurrency": "USD",
    }
    payload.update(overrides)
    return payload


def test_import_from_json_returns_portfolio() -> None:
    result = import_from_json(json.dumps(_portfolio_payload()))

    assert result.success is True
    assert isinstance(result.data, Portfolio)
    assert result.data.id == "p1"
    assert result.data.name == "Test"
    assert result.error is None


def test_import_reports_missing_field() -> None:
    payload = _portfolio_payload()
    del payload["name"]

    result = import_from_json(json.dumps(payload))

    assert result.success is False
    assert result.data is None
    assert result.error.message == "Validation failed"
    assert all(isinstance(detail, FieldError) for detail in result.error.details)
    assert "name" in [detail.path for detail in result.error.details]


def test_import_reports_malformed_json() -> None:
    result = import_from_json("not json")

    assert result.success is False
    assert "JSON" in result.error.message
    assert result.error.details["line"] == 1


def test_import_reports_oversized_integer() -> None:
    result = import_from_json('{"id": "p1", "currentValue": ' + "1" * 5000 + "}")

    assert result.success is False
    assert result.error.message.startswith("Invalid JSON")
    assert result.error.details == {"error": "ValueError"}


def test_import_reports_excessive_nesting() -> None:
    result = import_from_json("[" * 200_000 + "]" * 200_000)

    assert result.success is False
    assert result.error.details == {"error": "RecursionError"}


def test_import_without_validation_reports_shape_errors() -> None:
    result = import_from_json("[1, 2]", ImportOptions(validate=False))

    assert result.success is False
    assert "object" in result.error.message


def test_result_records_are_json_serializable() -> None:
    ok = import_from_json(json.dumps(_portfolio_payload()))
    payload = _portfolio_payload()
    del payload["name"]
    failed = import_from_json(json.dumps(payload))

    ok_record = json.loads(json.dumps(ok.to_record()))
    failed_record = json.loads(json.dumps(failed.to_record()))

    assert ok_record["success"] is True
    assert ok_record["data"]["dateCreated"].startswith("2024-01-01T00:00:00")
    assert failed_record["success"] is False
    assert failed_record["error"]["message"] == "Validation failed"
    assert failed_record["error"]["details"][0]["path"] == "name"
    assert "data" not in failed_record


def test_batch_import_keeps_order_and_isolates_failures() -> None:
    invalid = _portfolio_payload(id="p2")
    del invalid["name"]
    text = json.dumps([_portfolio_payload(), invalid, _portfolio_payload(id="p3")])

    results = import_multiple_from_json(text)

    assert [result.success for result in results] == [True, False, True]
    assert results[0].data.id == "p1"
    assert results[2].data.id == "p3"
    summary = BatchSummary.from_results(results)
    assert (summary.total, summary.succeeded, summary.failed) == (3, 2, 1)
    assert summary.failed_indexes == (1,)


def test_batch_import_requires_an_array() -> None:
    results = import_multiple_from_json(json.dumps(_portfolio_payload()))

    assert len(results) == 1
    assert results[0].success is False
    assert results[0].error.message == "Input must be an array of portfolio data"


def test_batch_import_reports_malformed_json_once() -> None:
    results = import_multiple_from_json("[{")

    assert len(results) == 1
    assert "Invalid JSON" in results[0].error.message


def test_batch_import_reports_oversized_integer_once() -> None:
    results = import_multiple_from_json("[" + "1" * 5000 + "]")

    assert len(results) == 1
    assert results[0].success is False
    assert results[0].error.details == {"error": "ValueError"}


def test_batch_import_of_empty_array() -> None:
    assert import_multiple_from_json("[]") == []


def test_import_from_file_path(tmp_path: Path) -> None:
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps(_portfolio_payload()), encoding="utf-8")

    result = import_from_file(path)

    assert result.success is True
    assert result.data.id == "p1"


def test_import_from_text_and_binary_streams() -> None:
    text = json.dumps(_portfolio_payload())

    from_text = import_from_file(io.StringIO(text))
    from_bytes = import_from_file(io.BytesIO(text.encode("utf-8")))

    assert from_text.success is True
    assert from_bytes.success is True
    assert from_text.data == from_bytes.data


def test_import_from_missing_file_reports_read_error(tmp_path: Path) -> None:
    result = import_from_file(tmp_path / "missing.json")

    assert result.success is False
    assert result.error.message
    assert result.error.details["source"].endswith("missing.json")


def test_import_multiple_from_file(tmp_path: Path) -> None:
    path = tmp_path / "portfolios.json"
    path.write_text(
        json.dumps([_portfolio_payload(), _portfolio_payload(id="p2")]),
        encoding="utf-8",
    )

    results = import_multiple_from_file(str(path))

    assert [result.data.id for result in results] == ["p1", "p2"]


def test_import_multiple_from_missing_file(tmp_path: Path) -> None:
    results = import_multiple_from_file(tmp_path / "missing.json")

    assert len(results) == 1
    assert results[0].success is False


def test_import_position_record_reports_risk_level() -> None:
    result = import_position_record({"id": "pos_1", "riskLevel": 11})

    assert result.success is False
    assert "riskLevel" in [detail.path for detail in result.error.details]
