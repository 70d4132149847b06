"""
Terminal report of volume divergence results using rich library.

Renders a CacheEntry as a summary panel plus tables of zones and
distribution clusters.
"""

from __future__ import annotations

from typing import List

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.domain.signals.models import CacheEntry, DistributionCluster, Zone


def _score_style(score: float) -> str:
    if score >= 0.5:
        return "bold green"
    if score >= 0.3:
        return "green"
    return "dim"


def _format_pct(value: float) -> Text:
    style = "green" if value > 0 else "red" if value < 0 else ""
    return Text(f"{value:+.2f}%", style=style)


def build_zone_table(zones: List[Zone], title: str = "Accumulation Zones") -> Table:
    table = Table(title=title, title_justify="left")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Days", justify="right")
    table.add_column("Wks", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Net Δ", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Absorb", justify="right")
    table.add_column("RSI div", justify="center")

    for zone in zones:
        m = zone.result.metrics
        table.add_row(
            str(zone.rank),
            zone.start_date.isoformat(),
            zone.end_date.isoformat(),
            str(zone.win_size),
            f"{zone.result.accum_weeks}/{zone.result.weeks}",
            Text(f"{zone.score:.3f}", style=_score_style(zone.score)),
            _format_pct(m.get("net_delta_pct", 0.0)),
            _format_pct(m.get("overall_price_change", 0.0)),
            f"{m.get('absorption_pct', 0.0):.1f}%",
            "✓" if m.get("vd_rsi_divergence") else "",
        )
    return table


def build_distribution_table(clusters: List[DistributionCluster]) -> Table:
    table = Table(title="Distribution Clusters", title_justify="left")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Span", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Net Δ", justify="right")

    for cluster in clusters:
        table.add_row(
            cluster.start_date.isoformat(),
            cluster.end_date.isoformat(),
            str(cluster.span_days),
            _format_pct(cluster.price_change_pct),
            _format_pct(cluster.net_delta_pct),
        )
    return table


def render_entry(symbol: str, entry: CacheEntry, show_all_zones: bool = False) -> Panel:
    """Summary panel for one symbol's detection result."""
    style = "green" if entry.is_detected else "yellow" if entry.reason.is_data_insufficient else "white"
    parts: list = [Text(entry.status, style=f"bold {style}")]

    metrics = entry.details.get("metrics", {})
    if metrics:
        parts.append(
            Text(
                f"{metrics.get('scan_start')} → {metrics.get('scan_end')} "
                f"({metrics.get('total_days')} days, {metrics.get('pre_days')} baseline)",
                style="dim",
            )
        )

    zones = entry.all_zones if show_all_zones else entry.zones
    if zones:
        parts.append(build_zone_table(zones, "All Zones" if show_all_zones else "Recent Zones"))
    if entry.distribution:
        parts.append(build_distribution_table(entry.distribution))

    return Panel(Group(*parts), title=f"[bold]{symbol.upper()}[/bold]", border_style=style)
