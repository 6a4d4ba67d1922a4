"""Typer CLI for LeadCost-Engine."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from leadcost_engine.common.exceptions import LeadCostError

app = typer.Typer(name="leadcost", help="LeadCost-Engine: outreach cost aggregation and reporting")
console = Console()


def _run(operation):
    """Run an async engine operation against a started engine, then close it."""
    from leadcost_engine.common.config import get_settings
    from leadcost_engine.common.logging import setup_logging
    from leadcost_engine.engine import CostEngine

    settings = get_settings()
    setup_logging(settings.log_level)

    async def runner():
        engine = CostEngine(settings)
        await engine.start()
        try:
            return await operation(engine)
        finally:
            await engine.close()

    try:
        return asyncio.run(runner())
    except LeadCostError as e:
        console.print(f"[bold red]{e.code}[/bold red]: {e.message}")
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the LeadCost-Engine API server."""
    import uvicorn
    from leadcost_engine.app import create_app

    console.print(f"[bold green]Starting LeadCost-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def metrics(
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the metrics cache"),
):
    """Show current-month dashboard metrics."""
    from leadcost_engine.costs.currency import format_cost, format_number

    snapshot = _run(lambda engine: engine.get_dashboard_metrics(force_refresh=refresh))

    table = Table(title=f"Costs for {snapshot.period}")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Instantly", format_cost(snapshot.instantly_cost))
    table.add_row("Google Workspace", format_cost(snapshot.google_workspace_cost))
    table.add_row("OpenRouter", format_cost(snapshot.openrouter_cost))
    table.add_row("Total", format_cost(snapshot.total_cost))
    table.add_row("Emails sent", format_number(snapshot.emails_sent))
    table.add_row("Meetings booked", format_number(snapshot.meetings_booked))
    table.add_row("Cost per email", format_cost(snapshot.cost_per_email))
    table.add_row("Cost per meeting", format_cost(snapshot.cost_per_meeting))
    table.add_row("Efficiency score", str(snapshot.efficiency_score))
    table.add_row("Remaining budget", format_cost(snapshot.remaining_budget))
    console.print(table)
    if snapshot.over_budget:
        console.print("[bold red]Monthly budget exceeded[/bold red]")


@app.command()
def trends(
    months: int = typer.Option(6, help="Trailing window, 1-24 months"),
):
    """Show monthly cost trends."""
    from leadcost_engine.costs.currency import format_cost
    from leadcost_engine.costs.trends import summarize_trends

    summaries = _run(lambda engine: engine.get_cost_trends(months))

    table = Table(title=f"Cost trends ({months} months)")
    for column in ("Month", "Total", "OpenRouter", "Emails", "Meetings", "Per email"):
        table.add_column(column, justify="right" if column != "Month" else "left")
    for s in summaries:
        table.add_row(
            s.period,
            format_cost(s.total_cost),
            format_cost(s.openrouter_cost),
            str(s.emails_sent),
            str(s.meetings_booked),
            format_cost(s.cost_per_email),
        )
    console.print(table)

    summary = summarize_trends(summaries)
    console.print(f"Average monthly cost: [bold]{format_cost(summary['average_monthly_cost'])}[/bold]")


@app.command()
def report(
    start: Optional[str] = typer.Option(None, help="Range start (ISO date)"),
    end: Optional[str] = typer.Option(None, help="Range end (ISO date)"),
    days: int = typer.Option(30, help="Trailing days when no range is given"),
):
    """Show a usage report for a date range or the last N days."""
    from leadcost_engine.costs.currency import format_cost

    if start is not None or end is not None:
        data = _run(lambda engine: engine.get_usage_report(start or "", end or ""))
    else:
        data = _run(lambda engine: engine.get_usage_report_for_days(days))

    console.print(f"Usage {data['start']} → {data['end']}")
    console.print(
        f"  Calls: {data['total_usage']}  Tokens: {data['total_tokens']}  "
        f"Cost: ${data['total_cost_usd']} ({format_cost(data['total_cost_eur'])})"
    )
    table = Table(title="By model")
    table.add_column("Model")
    table.add_column("Calls", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Cost", justify="right")
    for model, bucket in data["by_model"].items():
        table.add_row(model, str(bucket["count"]), str(bucket["total_tokens"]), format_cost(bucket["cost_eur"]))
    console.print(table)


@app.command("record-activity")
def record_activity(
    activity_type: str = typer.Argument(..., help="email_sent or meeting_booked"),
    campaign: Optional[str] = typer.Option(None, help="Campaign id"),
):
    """Record one outreach activity event."""
    record = _run(lambda engine: engine.record_activity(activity_type, campaign_id=campaign))
    console.print(f"[bold green]Recorded[/bold green] {record.activity_type} ({record.id})")


if __name__ == "__main__":
    app()
