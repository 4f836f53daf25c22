from unittest.mock import MagicMock, call

import pytest
from dateutil.relativedelta import relativedelta

from report_relay.archival import ArchivalPolicy
from report_relay.baseline import BaselineStore
from report_relay.dispatcher import StaggeredDispatcher
from report_relay.errors import DetailNotFoundError, TransportError
from report_relay.models import Entity
from report_relay.queue.channel_queue import ChannelQueue
from report_relay.queue.models import Purpose
from report_relay.receipts import ReceiptStore
from report_relay.render import TextLimits
from report_relay.storage import FileStorage
from report_relay.sync import SyncRun
from report_relay.worker import PublishWorker

from conftest import NOW, ms

T1 = ms(NOW - relativedelta(days=2))
T2 = ms(NOW - relativedelta(days=1))


def detail(entity_id, created, updated=None, **extra):
    data = {
        "id": entity_id,
        "createdDate": created,
        "lastUpdated": updated or created,
        "subject": f"Report {entity_id}",
        "responses": [],
        "status": "open",
    }
    data.update(extra)
    return data


@pytest.fixture
def source():
    source = MagicMock()
    source.details = {}
    source.detail.side_effect = lambda entity_id: Entity.from_dict(source.details[entity_id])
    return source


def make_run(tenant, source, storage, scheduler, **kwargs):
    dispatcher = StaggeredDispatcher(scheduler, tenant.process_delay_seconds, tenant.max_per_run, alert=kwargs.get("alert"))
    return SyncRun(tenant, source, storage, dispatcher, **kwargs)


def backend_mock():
    backend = MagicMock()
    backend.limits = TextLimits(224, 234, 265, 260)
    backend.publish.side_effect = lambda text, **kwargs: (f"id-{backend.publish.call_count}", {})
    return backend


def test_end_to_end_new_entities(tenant, source, storage, scheduler, clock):
    a = detail(1, T1)
    b = detail(2, T2)
    source.details = {1: a, 2: b}
    source.search.return_value = [Entity.from_dict(b), Entity.from_dict(a)]

    changes = make_run(tenant, source, storage, scheduler).run(now=NOW)

    assert sorted(e.id for e in changes.new) == [1, 2]
    assert source.detail.call_args_list == [call(1), call(2)]
    assert clock.now == 2 * tenant.process_delay_seconds
    assert BaselineStore(storage).known_ids() == {1, 2}

    for channel in tenant.channels:
        worker = PublishWorker(tenant, channel, backend_mock(), storage)
        worker.run_once()
        worker.run_once()
        receipts = ReceiptStore(storage, channel)
        assert len(receipts.receipts(1)) == 1
        assert len(receipts.receipts(2)) == 1


def test_second_run_with_same_fetch_queues_nothing(tenant, source, storage, scheduler):
    a = detail(1, T1)
    source.details = {1: a}
    source.search.return_value = [Entity.from_dict(a)]
    make_run(tenant, source, storage, scheduler).run(now=NOW)
    queue = ChannelQueue(storage, tenant.max_queue_size)
    queue.remove("twitter", Purpose.NEW_MESSAGE, queue.peek_oldest("twitter", Purpose.NEW_MESSAGE))

    changes = make_run(tenant, source, storage, scheduler).run(now=NOW)

    assert changes.is_empty
    assert queue.occupancy("twitter", Purpose.NEW_MESSAGE) == 0


def test_new_entity_with_responses_queues_response_update(tenant, source, storage, scheduler):
    a = detail(1, T1, responses=[{"message": "On it", "messageDate": T2}])
    source.details = {1: a}
    source.search.return_value = [Entity.from_dict(detail(1, T1))]

    make_run(tenant, source, storage, scheduler).run(now=NOW)

    queue = ChannelQueue(storage, tenant.max_queue_size)
    assert queue.occupancy("twitter", Purpose.NEW_MESSAGE) == 1
    assert queue.occupancy("mastodon", Purpose.RESPONSE_UPDATE) == 1


def test_image_is_fetched_and_stored(tenant, source, storage, scheduler):
    a = detail(1, T1, messageImage={"id": "44", "mimeType": "image/jpeg"})
    source.details = {1: a}
    source.search.return_value = [Entity.from_dict(a)]
    source.fetch_media.return_value = b"jpeg"

    make_run(tenant, source, storage, scheduler).run(now=NOW)

    source.fetch_media.assert_called_once_with("44")
    assert storage.read("images/1-44.jpeg") == b"jpeg"


def test_image_is_mirrored_after_local_write(tenant, source, storage, scheduler):
    a = detail(1, T1, messageImage={"id": "44", "mimeType": "image/png"})
    source.details = {1: a}
    source.search.return_value = [Entity.from_dict(a)]
    source.fetch_media.return_value = b"png"
    mirror = MagicMock()
    mirror.write.side_effect = lambda key, data: assert_stored_locally(storage, key)

    make_run(tenant, source, storage, scheduler, image_mirror=mirror).run(now=NOW)

    mirror.write.assert_called_once_with("images/1-44.png", b"png")


def assert_stored_locally(storage, key):
    assert storage.exists(key)


def test_update_with_new_response_queues_response_update(tenant, source, storage, scheduler):
    first = detail(1, T1)
    source.details = {1: first}
    source.search.return_value = [Entity.from_dict(first)]
    make_run(tenant, source, storage, scheduler).run(now=NOW)

    updated = detail(1, T1, updated=T2, responses=[{"message": "Done", "messageDate": T2}], status="closed")
    source.details = {1: updated}
    source.search.return_value = [Entity.from_dict(updated)]

    changes = make_run(tenant, source, storage, scheduler).run(now=NOW)

    assert [new.id for _, new in changes.updated] == [1]
    queue = ChannelQueue(storage, tenant.max_queue_size)
    assert queue.occupancy("twitter", Purpose.RESPONSE_UPDATE) == 1
    assert queue.occupancy("twitter", Purpose.STATUS_UPDATE) == 1
    assert BaselineStore(storage).detail(1).last_updated == Entity.from_dict(updated).last_updated


def test_items_beyond_max_per_run_are_stored_but_not_queued(tenant, source, storage, scheduler):
    from dataclasses import replace

    tenant = replace(tenant, max_per_run=1)
    entities = [detail(i, T1 + i) for i in (1, 2, 3)]
    source.details = {e["id"]: e for e in entities}
    source.search.return_value = [Entity.from_dict(e) for e in entities]

    make_run(tenant, source, storage, scheduler).run(now=NOW)

    queue = ChannelQueue(storage, tenant.max_queue_size)
    assert queue.occupancy("twitter", Purpose.NEW_MESSAGE) == 1
    assert queue.peek_oldest("twitter", Purpose.NEW_MESSAGE).payload["id"] == 1
    assert all(BaselineStore(storage).has_detail(i) for i in (1, 2, 3))


def test_detail_failure_is_isolated(tenant, source, storage, scheduler):
    entities = [detail(1, T1), detail(2, T2)]
    source.search.return_value = [Entity.from_dict(e) for e in entities]

    def fetch(entity_id):
        if entity_id == 1:
            raise DetailNotFoundError(entity_id)
        return Entity.from_dict(entities[1])

    source.detail.side_effect = fetch
    alert = MagicMock()

    make_run(tenant, source, storage, scheduler, alert=alert).run(now=NOW)

    queue = ChannelQueue(storage, tenant.max_queue_size)
    assert queue.peek_oldest("twitter", Purpose.NEW_MESSAGE).payload["id"] == 2
    assert any("No details" in c.args[0] for c in alert.call_args_list)


def test_search_failure_aborts_run(tenant, source, storage, scheduler):
    source.search.side_effect = TransportError("unreachable")

    with pytest.raises(TransportError):
        make_run(tenant, source, storage, scheduler).run(now=NOW)

    source.detail.assert_not_called()
    assert BaselineStore(storage).known_ids() == set()


def test_archival_runs_when_enabled(tenant, source, storage, scheduler):
    from dataclasses import replace

    tenant = replace(tenant, archive_old_messages=True)
    gone = detail(1, T1)
    source.details = {1: gone}
    source.search.return_value = [Entity.from_dict(gone)]
    make_run(tenant, source, storage, scheduler).run(now=NOW)

    source.search.return_value = []
    archive = FileStorage(tenant.tenant_archive_dir)
    make_run(tenant, source, storage, scheduler, archival=ArchivalPolicy(storage, archive)).run(now=NOW)

    assert archive.exists("messages/message-1.json")
    assert BaselineStore(storage).known_ids() == {1}
