"""Static Plotly HTML report for a set of positions."""

from __future__ import annotations

import html
from collections.abc import Sequence
from pathlib import Path

import pandas as pd
import plotly.express as px

from numisma.domain.models import Position
from numisma.format import format_currency, format_percentage
from numisma.metrics.portfolio import performance, valuations_frame


def generate_portfolio_report(
    positions: Sequence[Position],
    output_html_path: str | Path,
    title: str = "Portfolio Report",
    currency: str = "USD",
) -> Path:
    """Render allocation and per-position value charts to a single HTML file."""
    output = Path(output_html_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    if not positions:
        empty_df = pd.DataFrame({"asset": ["no-positions"], "value": [0]})
        figure = px.bar(empty_df, x="asset", y="value", title=title)
        figure.write_html(str(output), include_plotlyjs="cdn")
        return output

    summary = performance(positions)
    allocations = pd.DataFrame(
        [allocation.to_record() for allocation in summary.asset_allocations],
        columns=["asset", "value", "percentage"],
    )
    frame = valuations_frame(positions)
    frame["name"] = [position.name for position in positions]
    frame["asset"] = [position.asset.ticker for position in positions]

    pie = px.pie(allocations, names="asset", values="value", title="Asset Allocation")
    bars = px.bar(
        frame,
        x="name",
        y="value",
        color="asset",
        title="Position Values",
        hover_data=["cost_basis", "profit_loss", "percentage_return"],
    )
    headline = (
        f"<p>Value {format_currency(summary.total_value, currency)} | "
        f"P&amp;L {format_currency(summary.profit_loss, currency, sign_display='except_zero')} | "
        f"Return {format_percentage(summary.return_percentage, sign_display='except_zero')}</p>"
    )
    html_parts = [
        "<html><head><meta charset='utf-8'>",
        f"<title>{html.escape(title)}</title></head><body>",
        f"<h1>{html.escape(title)}</h1>",
        headline,
        pie.to_html(full_html=False, include_plotlyjs="cdn"),
        bars.to_html(full_html=False, include_plotlyjs=False),
        "</body></html>",
    ]
    output.write_text("".join(html_parts), encoding="utf-8")
    return output
