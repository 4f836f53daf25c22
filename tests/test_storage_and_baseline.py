from report_relay.baseline import BaselineStore
from report_relay.storage import FileStorage

from conftest import make_entity


def test_list_by_prefix_is_sorted_and_skips_temp_files(tmp_path):
    storage = FileStorage(tmp_path)
    storage.write_text("q/message-2.json", "{}")
    storage.write_text("q/message-1.json", "{}")
    storage.write_text("q/stats-1.txt", "x")
    (tmp_path / "q" / ".message-3.json.tmp").write_text("{}")

    assert storage.list_by_prefix("q/message-") == ["q/message-1.json", "q/message-2.json"]


def test_list_by_prefix_on_missing_directory_is_empty(tmp_path):
    assert FileStorage(tmp_path).list_by_prefix("nothing/here-") == []


def test_move_relocates_between_roots(tmp_path):
    active = FileStorage(tmp_path / "active")
    archive = FileStorage(tmp_path / "archive")
    active.write("images/1-2.png", b"x")

    active.move("images/1-2.png", archive)

    assert not active.exists("images/1-2.png")
    assert archive.read("images/1-2.png") == b"x"


def test_ledger_append_is_idempotent(storage):
    baseline = BaselineStore(storage)
    baseline.prepare()

    added_first = baseline.append([make_entity(1), make_entity(2)])
    added_again = baseline.append([make_entity(2), make_entity(3)])

    assert [e.id for e in added_first] == [1, 2]
    assert [e.id for e in added_again] == [3]
    assert [e.id for e in baseline.load_all()] == [1, 2, 3]


def test_entities_are_persisted_verbatim(storage):
    baseline = BaselineStore(storage)
    entity = make_entity(1, customField={"kept": True})

    baseline.save_detail(entity)

    assert baseline.detail(1).raw["customField"] == {"kept": True}
