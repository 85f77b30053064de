import datetime as dt

import pytest

from tablecycle import (
    InMemoryKvStore,
    LifecycleEngine,
    NotFound,
    Table,
    TableStatus,
    ValidationError,
    View,
    on,
)
from tablecycle.core.record import table_key

from conftest import HOST, NOW, SpyStore, hours


def _create(lifecycle, offset=None, host_id=HOST, **payload):
    if offset is not None:
        payload["starts_at"] = (NOW + offset).isoformat()
    return lifecycle.create_table({"name": "Home game", **payload}, host_id=host_id)


@pytest.mark.parametrize(
    "offset, expected",
    [
        (hours(2), TableStatus.SCHEDULED),
        (-hours(1), TableStatus.ACTIVE),
        (-hours(10), TableStatus.COMPLETED),
    ],
)
def test_create_derives_initial_status(lifecycle, store, offset, expected):
    table = _create(lifecycle, offset)

    assert table.status is expected
    assert table.host_id == HOST
    assert table.created_at == table.updated_at == NOW
    assert store.get(table.key)["status"] == expected.value


def test_create_from_separate_date_and_time(lifecycle):
    table = lifecycle.create_table(
        {"selectedDate": "2025-03-01", "selectedTime": "14:30", "gameType": "PLO"},
        host_id=HOST,
    )

    assert table.starts_at == "2025-03-01T14:30:00.000Z"
    assert table.status is TableStatus.SCHEDULED
    assert table.date == "Mar 1, 2025"
    assert table.time == "14:30"
    assert table.details.game_type == "PLO"


def test_create_with_hour_out_of_range_writes_nothing(lifecycle, store):
    with pytest.raises(ValidationError):
        lifecycle.create_table(
            {"selectedDate": "2025-03-01", "selectedTime": "25:00"}, host_id=HOST
        )
    assert store.writes == []


def test_create_rejects_malformed_details(lifecycle, store):
    with pytest.raises(ValidationError, match="details"):
        _create(lifecycle, hours(1), maxPlayers="lots")
    assert store.writes == []


def test_create_without_timing_is_untimed_and_scheduled(lifecycle):
    table = _create(lifecycle)

    assert table.starts_at is None
    assert table.status is TableStatus.SCHEDULED
    assert (table.date, table.time) == ("TBD", "TBD")


def test_create_carries_payload_through(lifecycle):
    table = _create(
        lifecycle,
        hours(1),
        buyInMin=50,
        buyInMax=200,
        isPrivate=True,
        blindLevels=[{"small": 1, "big": 2}],
        dress_code="hoodies",
        status="completed",
    )
    details = table.details

    assert (details.min_buy_in, details.max_buy_in, details.is_private) == (50, 200, True)
    assert details.blind_levels == [{"small": 1, "big": 2}]
    assert details.min_players == 6 and details.max_players == 9
    assert details.model_extra == {"dress_code": "hoodies"}
    assert table.status is TableStatus.SCHEDULED


def test_list_reconciles_drifted_status_with_single_write():
    stale = Table(
        host_id=HOST,
        status=TableStatus.SCHEDULED,
        starts_at=(NOW - hours(1)).isoformat(),
        created_at=NOW - hours(5),
        updated_at=NOW - hours(5),
    )
    store = SpyStore({stale.key: stale.to_store()})
    lifecycle = LifecycleEngine(store, clock=lambda: NOW)

    [table] = lifecycle.list_tables(HOST)

    assert table.status is TableStatus.ACTIVE
    assert table.updated_at == NOW > stale.updated_at
    assert store.writes == [stale.key]
    assert store.get(stale.key)["status"] == "active"


def test_second_listing_with_same_now_writes_nothing(lifecycle, store):
    _create(lifecycle, hours(1))
    _create(lifecycle, hours(3))
    later = NOW + hours(2)

    first = lifecycle.list_tables(HOST, now=later)
    writes_after_first = len(store.writes)
    second = lifecycle.list_tables(HOST, now=later)

    assert writes_after_first == 3
    assert len(store.writes) == writes_after_first
    assert first == second


def test_cancelled_table_survives_any_listing(lifecycle, store):
    table = _create(lifecycle, hours(1))
    lifecycle.set_status(table.id, "cancelled")
    writes = len(store.writes)

    for moment in (NOW, NOW + hours(3), NOW + hours(30)):
        [listed] = lifecycle.list_tables(HOST, now=moment)
        assert listed.status is TableStatus.CANCELLED
    assert len(store.writes) == writes


def test_history_view_orders_newest_first(lifecycle):
    completed = _create(lifecycle, -hours(30))
    cancelled = _create(lifecycle, -hours(10))
    lifecycle.set_status(cancelled.id, TableStatus.CANCELLED)
    _create(lifecycle, hours(4))

    history = lifecycle.list_tables(HOST, "history")

    assert [t.id for t in history] == [cancelled.id, completed.id]
    assert [t.status for t in history] == [TableStatus.CANCELLED, TableStatus.COMPLETED]


def test_views_and_owner_scoping(lifecycle):
    soon = _create(lifecycle, hours(1))
    later = _create(lifecycle, hours(5))
    live = _create(lifecycle, -hours(2))
    _create(lifecycle, hours(2), host_id="someone_else")

    assert [t.id for t in lifecycle.list_tables(HOST, View.SCHEDULED)] == [soon.id, later.id]
    assert [t.id for t in lifecycle.list_tables(HOST, View.ACTIVE)] == [live.id]
    assert [t.id for t in lifecycle.list_tables(HOST)] == [live.id, soon.id, later.id]
    assert lifecycle.list_tables("nobody") == []


def test_unknown_view_is_rejected(lifecycle):
    with pytest.raises(ValidationError, match="view"):
        lifecycle.list_tables(HOST, "archived")


def test_malformed_rows_are_skipped(caplog):
    good = Table(host_id=HOST, starts_at=(NOW + hours(1)).isoformat())
    store = InMemoryKvStore(
        {
            good.key: good.to_store(),
            "table:empty": {},
            "table:broken": {"id": "broken", "host_id": HOST, "status": "postponed"},
            "user:1": {"id": "user"},
        }
    )
    lifecycle = LifecycleEngine(store, clock=lambda: NOW)

    with caplog.at_level("WARNING"):
        tables = lifecycle.list_tables(HOST)

    assert [t.id for t in tables] == [good.id]
    assert "table:empty" in caplog.text and "table:broken" in caplog.text


def test_unparseable_start_is_listed_untouched(caplog):
    odd = Table(host_id=HOST, status=TableStatus.ACTIVE, starts_at="next friday")
    store = SpyStore({odd.key: odd.to_store()})
    lifecycle = LifecycleEngine(store, clock=lambda: NOW)

    with caplog.at_level("WARNING"):
        [table] = lifecycle.list_tables(HOST)

    assert table == odd
    assert store.writes == []
    assert "next friday" in caplog.text


def test_get_table_reconciles(lifecycle):
    table = _create(lifecycle, hours(1))

    assert lifecycle.get_table(table.id).status is TableStatus.SCHEDULED
    assert lifecycle.get_table(table.id, now=NOW + hours(8)).status is TableStatus.COMPLETED


def test_get_unknown_table(lifecycle):
    with pytest.raises(NotFound):
        lifecycle.get_table("table_missing")


def test_set_status_overrides_and_bumps_version(lifecycle, store):
    table = _create(lifecycle, -hours(10))
    moment = NOW + dt.timedelta(minutes=5)

    reopened = lifecycle.set_status(table.id, "scheduled", now=moment)

    assert reopened.status is TableStatus.SCHEDULED
    assert reopened.updated_at == moment
    assert reopened.version == table.version + 1
    assert store.get(table_key(table.id))["status"] == "scheduled"


def test_set_status_rejects_unknown_value(lifecycle, store):
    table = _create(lifecycle, hours(1))
    writes = len(store.writes)

    with pytest.raises(ValidationError, match="status"):
        lifecycle.set_status(table.id, "postponed")
    assert len(store.writes) == writes


def test_set_status_unknown_table_has_no_side_effect(lifecycle, store):
    with pytest.raises(NotFound):
        lifecycle.set_status("table_missing", "cancelled")
    assert store.writes == []


def test_updated_at_never_moves_backwards(lifecycle):
    table = _create(lifecycle, hours(1))
    earlier = NOW - hours(1)

    updated = lifecycle.set_status(table.id, "cancelled", now=earlier)
    assert updated.updated_at == NOW


def test_hooks_fire_on_create_and_status_change(lifecycle):
    created, moved = [], []

    @on.create
    def remember(table):
        created.append(table.id)

    @on.update
    def track(previous, table):
        moved.append((previous.status, table.status))

    table = _create(lifecycle, hours(1))
    lifecycle.list_tables(HOST, now=NOW + hours(2))
    lifecycle.set_status(table.id, "cancelled", now=NOW + hours(3))

    assert created == [table.id]
    assert moved == [
        (TableStatus.SCHEDULED, TableStatus.ACTIVE),
        (TableStatus.ACTIVE, TableStatus.CANCELLED),
    ]


def test_manual_status_on_untimed_table_survives_listing(lifecycle, store):
    table = _create(lifecycle)
    lifecycle.set_status(table.id, "completed")
    writes = len(store.writes)

    [listed] = lifecycle.list_tables(HOST, now=NOW + hours(48))

    assert listed.status is TableStatus.COMPLETED
    assert lifecycle.get_table(table.id).status is TableStatus.COMPLETED
    assert len(store.writes) == writes


def test_naive_now_is_treated_as_utc(lifecycle):
    table = _create(lifecycle, hours(1))
    naive = (NOW + hours(2)).replace(tzinfo=None)

    [listed] = lifecycle.list_tables(HOST, now=naive)
    assert listed.status is TableStatus.ACTIVE
    assert listed.updated_at == NOW + hours(2)

    cancelled = lifecycle.set_status(table.id, "cancelled", now=naive + hours(1))
    assert cancelled.updated_at == NOW + hours(3)
    assert lifecycle.get_table(table.id, now=naive).status is TableStatus.CANCELLED


def test_unreadable_stored_row_reads_as_not_found(caplog):
    store = SpyStore({"table:broken": {"id": "broken", "host_id": HOST, "status": "postponed"}})
    lifecycle = LifecycleEngine(store, clock=lambda: NOW)

    with caplog.at_level("WARNING"):
        with pytest.raises(NotFound):
            lifecycle.get_table("broken")
        with pytest.raises(NotFound):
            lifecycle.set_status("broken", "cancelled")

    assert store.writes == []
    assert "Unreadable row for table broken" in caplog.text
