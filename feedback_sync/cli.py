"""
Command-line interface for feedback-sync.

Usage:
    feedback-sync serve          # Run the HTTP API
    feedback-sync notify-worker  # Deliver admin alerts for critical feedback
    feedback-sync weekly-report  # Generate last week's report (cron)
    feedback-sync init-db        # Create the feedbacks table
    feedback-sync health         # Check PostgreSQL and Redis
"""

import asyncio
import json
import os
import signal
import sys

import click

from feedback_sync.config.settings import get_settings
from feedback_sync.observability.logging import setup_logging
from feedback_sync.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Feedback Sync - survey feedback, critical alerts, and weekly reports."""
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()

    settings = get_settings()
    if settings.tracing_enabled:
        from feedback_sync.observability.tracing import setup_tracing

        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def serve(host: str | None, port: int | None, reload: bool, metrics: bool) -> None:
    """Start the feedback API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    if metrics:
        get_metrics().start_server()
        click.echo(f"Metrics available on http://localhost:{settings.metrics_port}/metrics")

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "feedback_sync.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command("notify-worker")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def notify_worker(metrics: bool) -> None:
    """Run the admin notification worker."""
    from feedback_sync.alerts.config import AlertConfig
    from feedback_sync.alerts.notifiers import build_notifier
    from feedback_sync.alerts.queue import CriticalFeedbackQueue
    from feedback_sync.alerts.service import NotifyAdmin
    from feedback_sync.alerts.worker import NotifyAdminWorker

    async def run():
        config = AlertConfig()
        worker = NotifyAdminWorker(
            queue=CriticalFeedbackQueue(config=config),
            notify_admin=NotifyAdmin(build_notifier()),
            config=config,
        )

        if metrics:
            get_metrics().start_server()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda: asyncio.create_task(worker.stop()))

        await worker.start()

    asyncio.run(run())


@main.command("weekly-report")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def weekly_report(as_json: bool) -> None:
    """Generate and store last week's feedback report.

    Designed for cron scheduling: 0 6 * * 1 feedback-sync weekly-report
    """
    from feedback_sync.errors import FeedbackSyncError
    from feedback_sync.feedback.repository import FeedbackRepository
    from feedback_sync.reports.config import ReportConfig
    from feedback_sync.reports.service import GenerateWeeklyReport
    from feedback_sync.reports.store import FileReportStore
    from feedback_sync.storage.database import Database

    async def run():
        report_config = ReportConfig()

        async with Database() as db:
            service = GenerateWeeklyReport(
                feedback_store=FeedbackRepository(db),
                report_store=FileReportStore(config=report_config),
                tz=report_config.tzinfo,
            )
            try:
                report = await service.execute()
            except FeedbackSyncError as e:
                click.echo(click.style(f"Weekly report failed: {e}", fg="red"), err=True)
                sys.exit(1)

        if as_json:
            click.echo(json.dumps(report.to_response(), ensure_ascii=False, indent=2))
            return

        click.echo(f"\nWeekly Report ({report.period_start:%Y-%m-%d} .. {report.period_end:%Y-%m-%d}):")
        click.echo(f"  Feedback:      {report.total_count}")
        click.echo(f"  Average score: {report.average_score:.2f}")
        for day, count in report.counts_by_day.items():
            click.echo(f"  {day}:    {count}")
        for urgency, count in report.counts_by_urgency.items():
            click.echo(f"  {urgency:<13}: {count}")
        click.echo(f"  Stored at:     {report.storage_location or '(nothing stored)'}")

    asyncio.run(run())


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from feedback_sync.feedback.repository import FeedbackRepository
    from feedback_sync.storage.database import Database

    async def run():
        async with Database() as db:
            await FeedbackRepository(db).create_tables()
        click.echo("Database initialized successfully")

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check health of all dependencies."""
    import structlog

    from feedback_sync.alerts.queue import CriticalFeedbackQueue
    from feedback_sync.storage.database import Database

    logger = structlog.get_logger()

    async def check():
        results: dict[str, bool] = {}

        try:
            async with CriticalFeedbackQueue() as queue:
                results["redis"] = await queue.health_check()
        except Exception as e:
            results["redis"] = False
            logger.error("Redis health check failed", error=str(e))

        try:
            async with Database() as db:
                results["postgres"] = await db.health_check()
        except Exception as e:
            results["postgres"] = False
            logger.error("Postgres health check failed", error=str(e))

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)

        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))

        click.echo("-" * 40)

        if all(results.values()):
            click.echo(click.style("All core services healthy!", fg="green"))
            sys.exit(0)
        click.echo(click.style("Some services unhealthy!", fg="red"))
        sys.exit(1)

    asyncio.run(check())


if __name__ == "__main__":
    main()
