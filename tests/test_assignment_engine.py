import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from floorplan.core.errors import UnknownGuestError, UnknownTableError
from floorplan.domain.models import OnGuest, OnTable, OnUnassigned, Room
from floorplan.domain.store import FloorPlanStore
from floorplan.services.assignment import AssignmentEngine
from floorplan.services.reconciliation import tables_in_room


def _event_doc(tables=None, guests=None):
    return {
        "id": 7,
        "date": "2026-06-20T00:00:00.000Z",
        "name": "Svatba",
        "paidCount": 0,
        "freeCount": 0,
        "tables": tables or [],
        "guests": guests or [],
    }


def _guest(gid, name, **extra):
    return {"id": gid, "name": name, "type": "adult", "isPaid": False, "isPresent": False, **extra}


def _loaded_engine():
    """Table#1 (G1, G2), Table#2 (G3), G4 non placé."""
    store = FloorPlanStore()
    store.hydrate(_event_doc(
        tables=[
            {"id": 1, "tableName": "Stůl 1", "room": "roubenka", "capacity": 4,
             "guests": [_guest(1, "G1"), _guest(2, "G2")]},
            {"id": 2, "tableName": "Stůl 2", "room": "terasa", "capacity": 2,
             "guests": [_guest(3, "G3")]},
        ],
        guests=[_guest(4, "G4")],
    ))
    return store, AssignmentEngine(store)


def _assert_no_dangling(store):
    for guest in store.guests:
        assert guest.table_id is None or guest.table_id in store.tables


def test_hydrate_assigns_guests_to_their_table():
    store, _ = _loaded_engine()

    assert [g.name for g in store.guests.at_table(1)] == ["G1", "G2"]
    assert [g.name for g in store.guests.unassigned()] == ["G4"]
    assert store.require_event().date.isoformat() == "2026-06-20"


def test_delete_table_sends_guests_back_to_pool():
    store, engine = _loaded_engine()

    displaced = engine.delete_table(1)

    assert displaced == 2
    assert tables_in_room(store, Room.ROUBENKA) == []
    assert store.guests.get(1).table_id is None
    assert store.guests.get(2).table_id is None
    assert len(store.guests) == 4
    _assert_no_dangling(store)


def test_drop_on_guest_joins_that_guests_table():
    store, engine = _loaded_engine()

    assert engine.handle_drop("guest-4", "table-2")
    direct = store.guests.get(4).table_id

    engine.remove_from_table(4)
    assert engine.handle_drop("guest-4", "guest-3")

    assert direct == 2
    assert store.guests.get(4).table_id == direct


def test_drop_on_unassigned_guest_returns_to_pool():
    store, engine = _loaded_engine()

    assert engine.move_guest(1, OnGuest(4))
    assert store.guests.get(1).table_id is None


def test_move_is_idempotent():
    store, engine = _loaded_engine()

    engine.move_guest(4, OnTable(1))
    first = [(g.id, g.table_id) for g in store.guests]
    engine.move_guest(4, OnTable(1))

    assert [(g.id, g.table_id) for g in store.guests] == first


@pytest.mark.parametrize(
    "active_key, over_key",
    [
        ("guest-4", "table-99"),
        ("guest-4", "guest-99"),
        ("guest-4", None),
        ("guest-4", "chair-1"),
        ("guest-99", "table-1"),
        ("table-1", "table-2"),
        (None, "unassigned"),
    ],
)
def test_unresolvable_drop_is_a_noop(active_key, over_key):
    store, engine = _loaded_engine()
    before = [(g.id, g.table_id) for g in store.guests]

    assert engine.handle_drop(active_key, over_key) is False
    assert [(g.id, g.table_id) for g in store.guests] == before


def test_move_to_unassigned():
    store, engine = _loaded_engine()

    assert engine.move_guest(3, OnUnassigned())
    assert store.guests.get(3).table_id is None
    assert engine.handle_drop("guest-1", "unassigned")
    assert store.guests.get(1).table_id is None


def test_table_ids_are_never_reused():
    store, engine = _loaded_engine()

    third = engine.create_table("Stůl 3", "stodolka", 6)
    assert third.id == 3

    engine.delete_table(third.id)
    fourth = engine.create_table("Stůl 4", Room.CELY_AREAL, 6)

    assert fourth.id == 4
    assert fourth.room is Room.CELY_AREAL


def test_guest_ids_are_never_reused():
    store, engine = _loaded_engine()

    engine.delete_guest(4)
    guest = engine.add_guest("Nový host", "child", "CZ", True)

    assert guest.id == 5
    assert guest.type.value == "child"
    assert guest.table_id is None


def test_update_table_keeps_guests():
    store, engine = _loaded_engine()

    table = engine.update_table(1, name="VIP", room="terasa", capacity=1)

    assert table.name == "VIP"
    assert table.room is Room.TERASA
    assert [g.id for g in store.guests.at_table(1)] == [1, 2]


def test_capacity_is_not_enforced():
    store, engine = _loaded_engine()

    engine.move_guest(4, OnTable(2))
    engine.move_guest(1, OnTable(2))

    assert len(store.guests.at_table(2)) == 3


@pytest.mark.parametrize(
    "name, room, capacity",
    [("", "roubenka", 4), ("Stůl", "sklep", 4), ("Stůl", "terasa", 0)],
)
def test_create_table_validates_input(name, room, capacity):
    _, engine = _loaded_engine()

    with pytest.raises(ValueError):
        engine.create_table(name, room, capacity)


def test_unknown_table_raises():
    _, engine = _loaded_engine()

    with pytest.raises(UnknownTableError):
        engine.delete_table(42)
    with pytest.raises(UnknownTableError):
        engine.update_table(42, name="X", room="terasa", capacity=2)


def test_unknown_guest_raises():
    _, engine = _loaded_engine()

    with pytest.raises(UnknownGuestError):
        engine.remove_from_table(42)
    with pytest.raises(UnknownGuestError):
        engine.delete_guest(42)


def test_invariant_holds_after_mixed_operations():
    store, engine = _loaded_engine()

    engine.move_guest(4, OnTable(2))
    engine.create_table("Stůl 3", "stodolka", 3)
    engine.move_guest(2, OnTable(3))
    engine.delete_table(2)
    engine.delete_guest(1)
    engine.handle_drop("guest-3", "table-3")

    _assert_no_dangling(store)
    assert [g.id for g in store.guests.at_table(3)] == [2, 3]


def test_invalid_hydrate_keeps_current_state():
    store, _ = _loaded_engine()

    with pytest.raises(ValueError):
        store.hydrate(_event_doc(tables=[{"id": 1, "tableName": "X", "room": "sklep", "capacity": 2}]))

    assert len(store.tables) == 2
    assert len(store.guests) == 4


def test_tables_on_empty_plan_are_numbered_from_one():
    store = FloorPlanStore()
    store.hydrate(_event_doc())
    engine = AssignmentEngine(store)

    created = [engine.create_table(f"Stůl {i}", "roubenka", 4) for i in range(1, 6)]

    assert [t.id for t in created] == [1, 2, 3, 4, 5]
    assert store.tables.ids() == [1, 2, 3, 4, 5]
