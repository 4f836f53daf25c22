"""Command line entry points: sync, publish, stats."""
import signal
import sys

import typer

from report_relay import settings
from report_relay.alerts import SlackAlerter
from report_relay.archival import ArchivalPolicy
from report_relay.backends.registry import create_backend
from report_relay.baseline import BaselineStore
from report_relay.config import TenantConfig, load_tenant
from report_relay.dispatcher import StaggeredDispatcher
from report_relay.errors import ConfigError, TransportError
from report_relay.logging_conf import add_tenant_log_file, logger
from report_relay.queue.channel_queue import ChannelQueue
from report_relay.record_store import RecordStore
from report_relay.s3_storage import S3Storage
from report_relay.scheduler import Scheduler
from report_relay.source_client import SourceClient
from report_relay.stats import enqueue_week_stats
from report_relay.storage import FileStorage
from report_relay.sync import SyncRun
from report_relay.worker import PublishWorker

app = typer.Typer(
    name="report-relay",
    help="Relay civic reports to microblog channels",
    no_args_is_help=True,
)

TENANT_OPTION = typer.Option(..., "--tenant", "-t", help="Tenant key from the tenants file")


def _load(tenant_key: str, command: str) -> TenantConfig:
    try:
        tenant = load_tenant(settings.TENANTS_FILE, tenant_key)
    except ConfigError as e:
        logger.error(str(e))
        raise typer.Exit(1)
    add_tenant_log_file(tenant.tenant_dir, command)
    return tenant


def _alerter(tenant: TenantConfig) -> SlackAlerter:
    return SlackAlerter(tenant.key, settings.SLACK_WEBHOOK_URL, enabled=tenant.log_to_slack_channel)


def _image_mirror(tenant: TenantConfig):
    if not settings.AWS_S3_BUCKET_NAME:
        return None
    return S3Storage(
        settings.AWS_S3_BUCKET_NAME,
        prefix=f"tenants/{tenant.key}",
        endpoint_url=settings.AWS_S3_ENDPOINT_URL,
        region=settings.AWS_S3_REGION,
        access_key=settings.AWS_S3_ACCESS_KEY_ID,
        secret_key=settings.AWS_S3_SECRET_ACCESS_KEY,
    )


def _install_signal_handlers():
    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


@app.command()
def sync(tenant_key: str = TENANT_OPTION):
    """Fetch reports, detect changes, fill the publish queues and archive."""
    tenant = _load(tenant_key, "sync")
    _install_signal_handlers()
    try:
        settings.validate_config(alerting=tenant.log_to_slack_channel)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(1)
    alert = _alerter(tenant)

    record_store = None
    if settings.DATABASE_URL:
        record_store = RecordStore(settings.DATABASE_URL)
        record_store.ensure_schema()

    storage = FileStorage(tenant.tenant_dir)
    run = SyncRun(
        tenant,
        source=SourceClient(tenant),
        storage=storage,
        dispatcher=StaggeredDispatcher(Scheduler(), tenant.process_delay_seconds, tenant.max_per_run, alert=alert),
        archival=ArchivalPolicy(storage, FileStorage(tenant.tenant_archive_dir), tenant.retention_months),
        record_store=record_store,
        image_mirror=_image_mirror(tenant),
        alert=alert,
    )
    try:
        run.run()
    except TransportError:
        raise typer.Exit(1)
    finally:
        if record_store:
            record_store.close()


@app.command()
def publish(
    tenant_key: str = TENANT_OPTION,
    channel: str = typer.Option(..., "--channel", "-c", help="Channel to publish to"),
):
    """Publish the next queued item of one channel."""
    tenant = _load(tenant_key, f"publish-{channel}")
    if channel not in tenant.channels:
        logger.error(f"Channel {channel} is not configured for tenant {tenant.key}")
        raise typer.Exit(1)

    try:
        settings.validate_config([channel], alerting=tenant.log_to_slack_channel)
        backend = create_backend(channel)
    except (ValueError, ConfigError) as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(1)

    worker = PublishWorker(tenant, channel, backend, FileStorage(tenant.tenant_dir), alert=_alerter(tenant))
    worker.run_once()


@app.command()
def stats(tenant_key: str = TENANT_OPTION):
    """Queue the weekly statistics chart on every channel."""
    tenant = _load(tenant_key, "stats")
    storage = FileStorage(tenant.tenant_dir)
    text = enqueue_week_stats(tenant, ChannelQueue(storage, tenant.max_queue_size), BaselineStore(storage).load_all())
    typer.echo(text)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
