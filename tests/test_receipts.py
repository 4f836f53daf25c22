from report_relay.receipts import REPORTS_ENTRY, Receipt, ReceiptStore


def test_last_receipt_is_most_recent_append(storage):
    store = ReceiptStore(storage, "twitter")
    store.append(7, Receipt(entity_id=7, channel="twitter", receipt_id="100"))
    store.append(7, Receipt(entity_id=7, channel="twitter", receipt_id="101"))

    assert store.last_receipt(7).receipt_id == "101"
    assert [r.receipt_id for r in store.receipts(7)] == ["100", "101"]


def test_last_receipt_none_without_history(storage):
    assert ReceiptStore(storage, "twitter").last_receipt(7) is None


def test_receipts_are_per_channel(storage):
    ReceiptStore(storage, "twitter").append(7, Receipt(entity_id=7, channel="twitter", receipt_id="1"))

    assert ReceiptStore(storage, "mastodon").last_receipt(7) is None


def test_receipts_survive_a_new_store_instance(storage):
    ReceiptStore(storage, "mastodon").append(3, Receipt(entity_id=3, channel="mastodon", receipt_id="abc"))

    assert ReceiptStore(storage, "mastodon").last_receipt(3).receipt_id == "abc"


def test_report_receipts_go_to_weekly_stats_file(storage):
    ReceiptStore(storage, "twitter").append(REPORTS_ENTRY, Receipt(entity_id=REPORTS_ENTRY, channel="twitter", receipt_id="9"))

    assert storage.exists("receipts/twitter/weekly-stats.json")
