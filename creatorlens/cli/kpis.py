"""
KPI CLI Commands

Dashboard headline numbers and chart data for a reporting window.
"""

import logging

import click

from ..core.models import Period
from ..services.kpi_service import KPIService
from ..services.models import KPIValue


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)

PERIOD_CHOICE = click.Choice([p.value for p in Period])


def format_kpi(label: str, kpi: KPIValue, unit: str = "", decimals: int = 1) -> str:
    arrow = "▲" if kpi.delta_abs > 0 else ("▼" if kpi.delta_abs < 0 else "•")
    return (
        f"{label:22s} {kpi.value:>12,.{decimals}f}{unit}  "
        f"{arrow} {kpi.delta_abs:+,.{decimals}f} ({kpi.delta_pct:+.1f}%)"
    )


@click.group(name="kpis")
def kpis_group():
    """Dashboard KPIs and charts."""
    pass


@kpis_group.command(name="dashboard")
@click.option("--period", type=PERIOD_CHOICE, default=Period.LAST_30_DAYS.value, help="Reporting window")
def dashboard(period: str):
    """
    Show the KPI dashboard.

    Example:
        creatorlens kpis dashboard --period 7d
    """
    service = KPIService()
    kpis = service.get_dashboard(period)

    click.echo(f"\n{'='*60}")
    click.echo(f"📊 DASHBOARD ({kpis.period}, vs previous {kpis.period})")
    click.echo(f"{'='*60}\n")
    click.echo(format_kpi("Followers", kpis.followers_now, decimals=0))
    click.echo(format_kpi("New followers (7d)", kpis.new_followers, decimals=0))
    click.echo(format_kpi("Followers / 1K views", kpis.followers_yield, decimals=2))
    click.echo(format_kpi("Avg retention", kpis.retention_avg, unit="%"))
    click.echo(format_kpi("Saves / 1K views", kpis.saves_per_1k, decimals=2))
    click.echo(format_kpi("For You share", kpis.for_you_share, unit="%"))


@kpis_group.command(name="followers-trend")
@click.option("--period", type=PERIOD_CHOICE, default=Period.LAST_30_DAYS.value, help="Reporting window")
def followers_trend(period: str):
    """Recorded follower counts over the window."""
    points = KPIService().followers_trend(period)
    if not points:
        click.echo("No follower history in this window")
        return
    for point in points:
        click.echo(f"{point.date}  {point.count:>10,}")


@kpis_group.command(name="top-bottom")
@click.option("--period", type=PERIOD_CHOICE, default=Period.LAST_30_DAYS.value, help="Reporting window")
def top_bottom(period: str):
    """Best and worst videos by retention."""
    result = KPIService().top_vs_bottom(period)
    if not result.top:
        click.echo("No videos with views in this window")
        return

    for title, items in (("🏆 TOP", result.top), ("🔻 BOTTOM", result.bottom)):
        click.echo(title)
        for item in items:
            click.echo(
                f"  {item.retention:5.1f}% ret  {item.saves_per_1k:5.1f} S/1K  "
                f"{item.views:>9,} views  {item.title[:40]}"
            )
        click.echo()


@kpis_group.command(name="traffic")
@click.option("--period", type=PERIOD_CHOICE, default=Period.LAST_30_DAYS.value, help="Reporting window")
def traffic(period: str):
    """Traffic source breakdown."""
    slices = KPIService().traffic_donut(period)
    if not slices:
        click.echo("No traffic data in this window")
        return
    for item in slices:
        bar = "█" * int(item.value / 2)
        click.echo(f"{item.label:10s} {item.value:5.1f}%  {bar}")
