"""Tenant configuration loaded from tenants.json."""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple

from report_relay import settings
from report_relay.errors import ConfigError

SUPPORTED_CHANNELS = ("twitter", "mastodon")


@dataclass(frozen=True)
class TenantConfig:
    """Immutable per-tenant run configuration.

    Everything the pipeline needs about a tenant is carried here and handed to
    constructors; nothing below the CLI reads tenant state from module globals.
    """

    key: str
    source_system: str
    source_id: str
    limit_messages_fetch: int = 50
    process_delay_seconds: float = 30
    max_queue_size: int = 0
    max_per_run: int = 0
    archive_old_messages: bool = False
    retention_months: int = 6
    log_to_slack_channel: bool = False
    image_credit: str = ""
    stats_title: str = "Neue Meldungen"
    stats_hashtag: str = ""
    channels: Tuple[str, ...] = SUPPORTED_CHANNELS
    tenants_dir: Path = field(default=settings.TENANTS_DIR)
    archive_dir: Path = field(default=settings.ARCHIVE_DIR)

    @property
    def base_url(self) -> str:
        return f"https://include-{self.source_system}.zfinder.de"

    @property
    def tenant_base_url(self) -> str:
        return f"{self.base_url}/mobileportalpms/{self.source_id}"

    @property
    def tenant_dir(self) -> Path:
        return Path(self.tenants_dir) / self.key

    @property
    def tenant_archive_dir(self) -> Path:
        return Path(self.archive_dir) / self.key

    def detail_url(self, entity_id) -> str:
        """Public web link to a single report."""
        return f"{self.tenant_base_url}#meldungDetail?id={entity_id}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **overrides) -> "TenantConfig":
        try:
            key = data["key"]
            sue = data["providers"]["sue"]
            source_system = str(sue["system"])
            source_id = str(sue["id"])
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Tenant entry is missing {e}") from e

        options = data.get("config", {})
        channels = tuple(options.get("channels", SUPPORTED_CHANNELS))
        unknown = [c for c in channels if c not in SUPPORTED_CHANNELS]
        if unknown:
            raise ConfigError(f"Unknown channel(s) for tenant {key}: {', '.join(unknown)}")

        values = dict(
            key=key,
            source_system=source_system,
            source_id=source_id,
            limit_messages_fetch=int(options.get("limitMessagesFetch", 50)),
            process_delay_seconds=float(options.get("processDelaySeconds", 30)),
            max_queue_size=int(options.get("maxQueueSize", 0)),
            max_per_run=int(options.get("maxPerRun", 0)),
            archive_old_messages=bool(options.get("archiveOldMessages", False)),
            retention_months=int(options.get("retentionMonths", 6)),
            log_to_slack_channel=bool(options.get("logToSlackChannel", False)),
            image_credit=options.get("imageCredit", ""),
            stats_title=options.get("statsTitle", "Neue Meldungen"),
            stats_hashtag=options.get("statsHashtag", ""),
            channels=channels,
        )
        values.update(overrides)
        return cls(**values)


def load_tenant(path: Path, key: str, **overrides) -> TenantConfig:
    """Return the active tenant named `key` from the tenants file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            tenants = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Tenants file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Tenants file is not valid JSON: {e}") from e

    for tenant in tenants:
        if tenant.get("key") == key and tenant.get("config", {}).get("active"):
            return TenantConfig.from_dict(tenant, **overrides)

    raise ConfigError(f"Couldn't load tenant configuration for '{key}'")
