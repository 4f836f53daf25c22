from datetime import datetime, timezone

import pytest

from report_relay.config import TenantConfig
from report_relay.models import Entity
from report_relay.scheduler import Scheduler
from report_relay.storage import FileStorage

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def make_entity(entity_id, created=None, updated=None, **extra) -> Entity:
    created = created if created is not None else ms(NOW)
    data = {
        "id": entity_id,
        "createdDate": created,
        "lastUpdated": updated if updated is not None else created,
        "subject": f"Report {entity_id}",
        "responses": [],
        "status": "open",
    }
    data.update(extra)
    return Entity.from_dict(data)


class FakeClock:
    """Monotonic clock whose sleep only advances time."""

    def __init__(self):
        self.now = 0.0

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock=clock.time, sleep=clock.sleep)


@pytest.fixture
def tenant(tmp_path):
    return TenantConfig(
        key="md",
        source_system="md",
        source_id="1",
        max_queue_size=5,
        process_delay_seconds=10,
        image_credit="LH Magdeburg",
        channels=("twitter", "mastodon"),
        tenants_dir=tmp_path / "tenants",
        archive_dir=tmp_path / "archive",
    )


@pytest.fixture
def storage(tenant):
    return FileStorage(tenant.tenant_dir)
