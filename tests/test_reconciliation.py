import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from floorplan.domain.store import FloorPlanStore
from floorplan.services.reconciliation import (
    ALL_NATIONALITIES,
    guests_at_table,
    headcount_summary,
    nationality_facets,
    table_occupancy,
    tables_in_room,
    unassigned_guests,
)


def _store(paid_count=3, free_count=1):
    store = FloorPlanStore()
    store.hydrate({
        "id": 1,
        "date": "2026-08-01",
        "paidCount": paid_count,
        "freeCount": free_count,
        "tables": [
            {"id": 1, "tableName": "A", "room": "roubenka", "capacity": 1, "guests": [
                {"id": 1, "name": "Petr", "nationality": "CZ", "isPaid": True},
                {"id": 2, "name": "Hans", "nationality": "DE", "isPaid": True},
            ]},
            {"id": 2, "tableName": "B", "room": "terasa", "capacity": 6, "guests": []},
        ],
        "guests": [
            {"id": 3, "name": "Anna", "nationality": "DE", "isPaid": True},
            {"id": 4, "name": "Marie", "nationality": "CZ", "isPaid": False},
            {"id": 5, "name": "Lucie", "nationality": None, "isPaid": False},
            {"id": 6, "name": "Klaus", "nationality": "DE", "isPaid": False},
        ],
    })
    return store


def test_computed_counts_cover_whole_roster():
    summary = headcount_summary(_store())

    assert summary.computed_paid == 3
    assert summary.computed_free == 3
    assert summary.computed_total == 6


def test_manual_counts_are_kept_apart():
    summary = headcount_summary(_store(paid_count=3, free_count=1))

    assert (summary.manual_paid, summary.manual_free) == (3, 1)
    assert summary.manual_total == 4
    assert summary.has_discrepancy


def test_no_discrepancy_when_totals_match():
    assert not headcount_summary(_store(paid_count=5, free_count=1)).has_discrepancy


def test_headcounts_without_event():
    summary = headcount_summary(FloorPlanStore())

    assert summary.computed_total == 0
    assert summary.manual_total == 0
    assert not summary.has_discrepancy


def test_nationality_facets_follow_unassigned_pool():
    store = _store()

    assert nationality_facets(store) == ["DE", "CZ"]

    store.guests.get(4).table_id = 2
    assert nationality_facets(store) == ["DE"]


def test_unassigned_filter():
    store = _store()

    assert [g.name for g in unassigned_guests(store)] == ["Anna", "Marie", "Lucie", "Klaus"]
    assert [g.name for g in unassigned_guests(store, ALL_NATIONALITIES)] == ["Anna", "Marie", "Lucie", "Klaus"]
    assert [g.name for g in unassigned_guests(store, "DE")] == ["Anna", "Klaus"]
    assert unassigned_guests(store, "PL") == []


def test_table_occupancy_is_advisory():
    store = _store()

    full = table_occupancy(store, 1)
    empty = table_occupancy(store, 2)

    assert full.ratio_label == "2 / 1"
    assert full.over_capacity
    assert empty.ratio_label == "0 / 6"
    assert not empty.over_capacity


def test_room_and_table_projections():
    store = _store()

    assert [t.name for t in tables_in_room(store, "roubenka")] == ["A"]
    assert tables_in_room(store, "stodolka") == []
    assert [g.name for g in guests_at_table(store, 1)] == ["Petr", "Hans"]
