from __future__ import annotations

import pytest

from backoffice_client_sdk.branch_catalog import BranchCatalog
from backoffice_client_sdk.composer import DUPLICATE_MESSAGE, SUBMIT_IN_PROGRESS, BulkTransferComposer
from backoffice_client_sdk.inventory_snapshot import InventorySnapshotLoader
from backoffice_client_sdk.models import Branch
from backoffice_client_sdk.notifications import NotificationCenter, NotificationKind
from backoffice_client_sdk.telemetry import TelemetryRecorder
from backoffice_client_sdk.transfer_submitter import TransferSubmitter
from backoffice_client_sdk.transfer_validation import VALIDATION_TITLE

from support import (
    FakeBranchesClient,
    FakeInventoryClient,
    FakeTransfersClient,
    api_error,
    item,
)

BRANCHES = [Branch(id=1, name="North"), Branch(id=2, name="South"), Branch(id=3, name="Center")]
INVENTORY = {
    1: [item("a", "USB Cable", 5, barcode="111"), item("b", "Plug", 0), item("c", "Tape", 2)],
    2: [item("x", "Drill", 4)],
}


@pytest.fixture
def parts(clock, scheduler):
    notifications = NotificationCenter(clock=clock)
    inventory = FakeInventoryClient(by_branch=dict(INVENTORY))
    transfers = FakeTransfersClient()
    events: list[str] = []
    composer = BulkTransferComposer(
        catalog=BranchCatalog(FakeBranchesClient(list(BRANCHES)), notifications),
        loader=InventorySnapshotLoader(inventory, notifications),
        submitter=TransferSubmitter(transfers, notifications, scheduler=scheduler),
        notifications=notifications,
        telemetry=TelemetryRecorder(enabled=True),
        on_success=lambda: events.append("success"),
        on_close=lambda: events.append("close"),
    )
    return composer, inventory, transfers, events


def test_open_loads_branches(parts) -> None:
    composer, *_ = parts

    result = composer.open()

    assert result["ok"]
    assert [row["id"] for row in result["branches"]] == [1, 2, 3]
    assert composer.is_open


def test_open_failure_returns_error(clock) -> None:
    notifications = NotificationCenter(clock=clock)
    composer = BulkTransferComposer(
        catalog=BranchCatalog(FakeBranchesClient(fail=api_error(500, None)), notifications),
        loader=InventorySnapshotLoader(FakeInventoryClient(), notifications),
        submitter=TransferSubmitter(FakeTransfersClient(), notifications, scheduler=lambda *_: None),
        notifications=notifications,
    )

    result = composer.open()

    assert not result["ok"]
    assert result["branches"] == []
    assert notifications.current.kind is NotificationKind.ERROR


def test_select_source_loads_in_stock_items(parts) -> None:
    composer, inventory, *_ = parts
    composer.open()

    result = composer.select_source(1)

    assert result["ok"] and result["items"] == 2
    assert [row.product_id for row in composer.visible_items()] == ["a", "c"]
    assert inventory.calls == [1]


def test_reselecting_same_source_does_not_reload(parts) -> None:
    composer, inventory, *_ = parts
    composer.select_source(1)
    composer.add_product("a")

    result = composer.select_source(1)

    assert result["changed"] is False
    assert inventory.calls == [1]
    assert composer.summary()["line_count"] == 1


def test_changing_source_discards_lines(parts) -> None:
    composer, *_ = parts
    composer.select_source(1)
    composer.add_product("a")

    composer.select_source(2)

    assert composer.summary() == {"line_count": 0, "total_units": 0}
    assert [row.product_id for row in composer.visible_items()] == ["x"]


def test_out_of_order_snapshots_keep_latest_branch(parts) -> None:
    composer, *_ = parts
    first = composer.change_source(1)
    second = composer.change_source(2)

    composer.receive_snapshot(second, items=INVENTORY[2])
    late = composer.receive_snapshot(first, items=INVENTORY[1])

    assert late["stale"] is True
    assert [row.product_id for row in composer.visible_items()] == ["x"]
    assert composer.draft.source_branch_id == 2


def test_snapshot_failure_then_reload(parts, clock) -> None:
    composer, inventory, *_ = parts
    inventory.fail = api_error(503, {"detail": "down"})

    failed = composer.select_source(1)

    assert not failed["ok"]
    assert composer.visible_items() == []
    assert composer.notifications.current.message == "Could not load the products for this branch."

    inventory.fail = None
    reloaded = composer.reload_source()

    assert reloaded["ok"]
    assert inventory.calls == [1, 1]


def test_reload_without_source(parts) -> None:
    composer, *_ = parts

    assert composer.reload_source()["ok"] is False


def test_destination_options_exclude_source(parts) -> None:
    composer, *_ = parts
    composer.open()
    composer.select_source(2)

    assert [row["id"] for row in composer.destination_options()] == [1, 3]


def test_search_filters_visible_items(parts) -> None:
    composer, *_ = parts
    composer.select_source(1)

    assert [row.product_id for row in composer.search("usb")] == ["a"]
    assert [row.product_id for row in composer.search("111")] == ["a"]
    assert len(composer.search("")) == 2


def test_duplicate_add_warns(parts) -> None:
    composer, *_ = parts
    composer.select_source(1)
    composer.add_product("a")

    result = composer.add_product("a")

    assert result["duplicate"] is True
    assert composer.notifications.current.kind is NotificationKind.WARNING
    assert composer.notifications.current.message == DUPLICATE_MESSAGE
    assert composer.summary()["line_count"] == 1


def test_add_unknown_or_out_of_stock_product(parts) -> None:
    composer, *_ = parts
    composer.select_source(1)

    assert composer.add_product("b")["ok"] is False
    assert composer.add_product("zzz")["ok"] is False


def test_quantity_editing_updates_summary(parts) -> None:
    composer, *_ = parts
    composer.select_source(1)
    composer.add_product("a")
    composer.add_product("c")

    assert composer.set_quantity("a", "999")["line"]["quantity"] == 5
    assert composer.set_quantity("c", "")["line"]["state"] == "editing"
    assert composer.summary() == {"line_count": 2, "total_units": 5}
    assert composer.commit_quantity("c")["line"]["quantity"] == 1
    assert composer.decrement("a")["line"]["quantity"] == 4
    assert composer.increment("c")["line"]["quantity"] == 2
    assert composer.set_max("a")["summary"] == {"line_count": 2, "total_units": 7}
    assert composer.remove_product("c")["summary"]["line_count"] == 1
    assert composer.set_quantity("zzz", "1")["ok"] is False
    assert composer.clear_lines()["summary"] == {"line_count": 0, "total_units": 0}


def test_submit_validation_failure_notifies(parts) -> None:
    composer, _, transfers, _ = parts
    composer.select_source(1)
    composer.add_product("a")

    result = composer.submit()

    assert not result["ok"]
    assert result["validation"]["reason"] == "destination_missing"
    assert composer.notifications.current.title == VALIDATION_TITLE
    assert transfers.payloads == []
    assert composer.telemetry.events[-1].category == "validation"


def test_submit_equal_branches_rejected(parts) -> None:
    composer, _, transfers, _ = parts
    composer.select_source(1)
    composer.select_destination(1)
    composer.add_product("a")

    result = composer.submit()

    assert result["validation"]["reason"] == "source_equals_destination"
    assert transfers.payloads == []


def test_submit_while_in_progress_is_rejected(parts) -> None:
    composer, _, transfers, _ = parts
    composer.is_submitting = True

    assert composer.submit() == {"ok": False, "error": SUBMIT_IN_PROGRESS}
    assert transfers.payloads == []


def test_submit_success_flow(parts, scheduler) -> None:
    composer, _, transfers, events = parts
    composer.open()
    composer.select_source(1)
    composer.select_destination(2)
    composer.set_notes("restock")
    composer.search("tape")
    composer.add_product("a")
    composer.set_quantity("a", "3")

    result = composer.submit()

    assert result["ok"]
    assert result["transfer_id"] == 77
    assert result["total_units"] == 3
    assert transfers.payloads[0].model_dump(mode="json") == {
        "from_branch": 1,
        "to_branch": 2,
        "notes": "restock",
        "items": [{"product": "a", "quantity": 3, "unit_price": 1.0}],
    }
    assert composer.is_submitting is False
    assert composer.search_term == ""
    assert composer.draft.source_branch_id is None
    assert composer.notifications.current.kind is NotificationKind.SUCCESS
    assert events == []

    scheduler.run_all()

    assert events == ["success", "close"]
    assert composer.is_open is False


def test_submit_failure_keeps_draft(parts) -> None:
    composer, _, transfers, events = parts
    transfers.fail = api_error(400, "Stock insuficiente")
    composer.select_source(1)
    composer.select_destination(2)
    composer.add_product("a")

    result = composer.submit()

    assert not result["ok"]
    assert result["error"] == "Stock insuficiente"
    assert composer.summary()["line_count"] == 1
    assert composer.is_submitting is False
    assert events == []


def test_dismiss_resets_state(parts) -> None:
    composer, _, _, events = parts
    composer.open()
    request = composer.change_source(1)
    composer.search("cable")

    composer.dismiss()

    assert composer.receive_snapshot(request, items=INVENTORY[1])["stale"] is True
    assert composer.visible_items() == []
    assert composer.search_term == ""
    assert events == ["close"]


def test_render_shape(parts) -> None:
    composer, *_ = parts
    composer.open()
    composer.select_source(1)
    composer.add_product("c")

    view = composer.render()

    assert view["source_branch_id"] == 1
    assert view["cart"]["line_count"] == 1
    assert [row["product_id"] for row in view["visible_items"]] == ["a", "c"]
    assert view["notification"]["visible"] is False


def _ready_to_submit(composer: BulkTransferComposer) -> None:
    composer.open()
    composer.select_source(1)
    composer.select_destination(2)
    composer.add_product("a")
    composer.set_quantity("a", "2")


def test_delayed_close_does_not_reach_a_reopened_session(parts, scheduler) -> None:
    composer, _, _, events = parts
    _ready_to_submit(composer)
    assert composer.submit()["ok"]
    pending = scheduler.calls[0]

    composer.dismiss()
    composer.open()
    composer.select_source(1)
    composer.add_product("c")
    scheduler.run_all()

    assert pending.cancelled is True
    assert events == ["close"]
    assert composer.is_open is True
    assert composer.summary() == {"line_count": 1, "total_units": 1}


def test_stale_close_callback_is_ignored_even_if_it_fires(parts, scheduler) -> None:
    composer, _, _, events = parts
    _ready_to_submit(composer)
    composer.submit()
    close = scheduler.calls[0].callback

    composer.dismiss()
    composer.open()
    composer.select_source(1)
    composer.add_product("c")
    close()

    assert events == ["close"]
    assert composer.is_open is True
    assert composer.draft.lines.product_ids == ("c",)


def test_begin_submit_locks_the_draft_until_finished(parts) -> None:
    composer, _, transfers, _ = parts
    _ready_to_submit(composer)

    started = composer.begin_submit()

    assert started["ok"] and started["total_units"] == 2
    assert composer.is_submitting is True
    assert composer.render()["submitting"] is True
    assert composer.add_product("c") == {"ok": False, "error": SUBMIT_IN_PROGRESS}
    assert composer.set_quantity("a", "5")["error"] == SUBMIT_IN_PROGRESS
    assert composer.select_source(2)["error"] == SUBMIT_IN_PROGRESS
    assert composer.change_source(2) is None
    assert composer.submit() == {"ok": False, "error": SUBMIT_IN_PROGRESS}
    assert composer.draft.lines.product_ids == ("a",)

    confirmation = composer.submitter.send(started["request"])
    finished = composer.finish_submit(started["request"], confirmation=confirmation)

    assert finished["ok"] and finished["transfer_id"] == 77
    assert len(transfers.payloads) == 1
    assert composer.is_submitting is False
    assert composer.draft.source_branch_id is None
    assert len(composer.draft.lines) == 0


def test_finish_submit_with_error_unlocks_and_keeps_draft(parts, scheduler) -> None:
    composer, *_ = parts
    _ready_to_submit(composer)
    started = composer.begin_submit()

    finished = composer.finish_submit(started["request"], error=api_error(400, {"detail": "Not enough stock"}))

    assert finished == {"ok": False, "line_count": 1, "total_units": 2, "error": "Not enough stock"}
    assert composer.is_submitting is False
    assert composer.draft.lines.get("a").quantity == 2
    assert composer.add_product("c")["ok"] is True
    assert scheduler.calls == []


def test_dismiss_during_submit_leaves_next_session_alone(parts, scheduler) -> None:
    composer, _, _, events = parts
    _ready_to_submit(composer)
    started = composer.begin_submit()

    composer.dismiss()
    composer.open()
    composer.select_source(1)
    composer.add_product("c")
    finished = composer.finish_submit(started["request"], confirmation=composer.submitter.send(started["request"]))

    assert finished["ok"] and finished["stale"] is True
    assert composer.draft.lines.product_ids == ("c",)
    assert composer.draft.source_branch_id == 1
    assert scheduler.calls == []
    assert events == ["close"]


def test_unexpected_send_failure_releases_the_lock(parts) -> None:
    composer, _, transfers, _ = parts
    transfers.fail = RuntimeError("bug")
    _ready_to_submit(composer)

    with pytest.raises(RuntimeError):
        composer.submit()

    assert composer.is_submitting is False
    assert composer.add_product("c")["ok"] is True


def test_render_shows_branch_names(parts) -> None:
    composer, *_ = parts
    composer.open()
    composer.select_source(1)
    composer.select_destination(3)

    view = composer.render()

    assert view["source_branch_name"] == "North"
    assert view["destination_branch_name"] == "Center"
