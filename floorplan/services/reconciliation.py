"""Projections en lecture seule du plan de salle (compteurs, filtres, taux
d'occupation). Recalculées à chaque affichage, sans effet de bord."""
from __future__ import annotations

from dataclasses import dataclass

from floorplan.domain.models import Guest, Room, Table
from floorplan.domain.store import FloorPlanStore

ALL_NATIONALITIES = "all"


@dataclass(frozen=True)
class HeadcountSummary:
    computed_paid: int
    computed_free: int
    manual_paid: int
    manual_free: int

    @property
    def computed_total(self) -> int:
        return self.computed_paid + self.computed_free

    @property
    def manual_total(self) -> int:
        return self.manual_paid + self.manual_free

    @property
    def has_discrepancy(self) -> bool:
        # simple signalement : les deux sources restent indépendantes
        return self.computed_total != self.manual_total


@dataclass(frozen=True)
class TableOccupancy:
    table_id: int
    seated: int
    capacity: int

    @property
    def over_capacity(self) -> bool:
        return self.seated > self.capacity

    @property
    def ratio_label(self) -> str:
        return f"{self.seated} / {self.capacity}"


def headcount_summary(store: FloorPlanStore) -> HeadcountSummary:
    guests = list(store.guests)
    paid = sum(1 for g in guests if g.is_paid)
    event = store.event
    return HeadcountSummary(
        computed_paid=paid,
        computed_free=len(guests) - paid,
        manual_paid=event.paid_count if event else 0,
        manual_free=event.free_count if event else 0,
    )


def unassigned_guests(store: FloorPlanStore, nationality: str | None = ALL_NATIONALITIES) -> list[Guest]:
    pool = store.guests.unassigned()
    if not nationality or nationality == ALL_NATIONALITIES:
        return pool
    return [g for g in pool if g.nationality == nationality]


def nationality_facets(store: FloorPlanStore) -> list[str]:
    """Nationalités présentes dans le pool non placé, dans l'ordre d'apparition."""
    seen: dict[str, None] = {}
    for guest in store.guests.unassigned():
        if guest.nationality:
            seen.setdefault(guest.nationality, None)
    return list(seen)


def tables_in_room(store: FloorPlanStore, room: Room | str) -> list[Table]:
    return store.tables.in_room(Room(room))


def guests_at_table(store: FloorPlanStore, table_id: int) -> list[Guest]:
    return store.guests.at_table(table_id)


def table_occupancy(store: FloorPlanStore, table_id: int) -> TableOccupancy:
    table = store.tables.get(table_id)
    capacity = table.capacity if table else 0
    return TableOccupancy(table_id=table_id, seated=len(store.guests.at_table(table_id)), capacity=capacity)
