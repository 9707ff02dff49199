from __future__ import annotations

from pathlib import Path

from numisma.domain.models import (
    Asset,
    LocationType,
    Position,
    PositionDetails,
    PositionSide,
    PositionStatus,
    TimeFrame,
    WalletType,
)
from numisma.logging import generate_portfolio_report


def _position(position_id: str, ticker: str, value: float) -> Position:
    return Position(
        id=position_id,
        name=f"{ticker} Long",
        risk_level=5,
        portfolio="p1",
        wallet_type=WalletType.HOT,
        seed_capital_tier="C1",
        strategy="Swing",
        asset=Asset(
            name=ticker,
            ticker=ticker,
            pair=f"{ticker}/USD",
            location_type=LocationType.EXCHANGE,
            wallet="main",
        ),
        position_details=PositionDetails(
            status=PositionStatus.ACTIVE,
            side=PositionSide.LONG,
            time_frame=TimeFrame.D1,
            total_cost=value * 0.9,
        ),
        user_id="user-1",
        current_value=value,
    )


def test_report_contains_charts_and_headline(tmp_path: Path) -> None:
    output = tmp_path / "nested" / "report.html"

    written = generate_portfolio_report(
        [_position("pos_1", "BTC", 50000), _position("pos_2", "ETH", 15000)],
        output,
        title="Main <portfolio>",
    )

    html = output.read_text(encoding="utf-8")
    assert written == output
    assert "<title>Main &lt;portfolio&gt;</title>" in html
    assert "Asset Allocation" in html
    assert "Position Values" in html
    assert "Value $65,000.00" in html


def test_report_without_positions_writes_placeholder(tmp_path: Path) -> None:
    output = tmp_path / "empty.html"

    generate_portfolio_report([], output, title="Empty")

    assert output.exists()
    assert "no-positions" in output.read_text(encoding="utf-8")
