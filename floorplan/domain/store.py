from __future__ import annotations
import logging
from typing import Generic, Iterator, Optional, TypeVar

from floorplan.domain.models import EventInfo, Guest, Table

log = logging.getLogger(__name__)

T = TypeVar("T", Guest, Table)


class _IdStore(Generic[T]):
    """Collection indexée par id, ordre d'insertion conservé.

    Les ids sont alloués en ``max + 1`` ; le plus grand id déjà vu est
    mémorisé pour ne jamais réattribuer l'id d'un élément supprimé.
    """

    def __init__(self) -> None:
        self._items: dict[int, T] = {}
        self._high_water = 0

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def get(self, item_id: int | None) -> Optional[T]:
        if item_id is None:
            return None
        return self._items.get(item_id)

    def ids(self) -> list[int]:
        return list(self._items)

    def next_id(self) -> int:
        return max([self._high_water, *self._items]) + 1

    def add(self, item: T) -> T:
        if item.id in self._items:
            raise ValueError(f"Id déjà utilisé : {item.id}")
        self._items[item.id] = item
        self._high_water = max(self._high_water, item.id)
        return item

    def remove(self, item_id: int) -> Optional[T]:
        return self._items.pop(item_id, None)

    def replace_all(self, items: list[T]) -> None:
        self._items = {}
        self._high_water = 0
        for item in items:
            self.add(item)


class TableStore(_IdStore[Table]):
    def in_room(self, room) -> list[Table]:
        return [t for t in self if t.room == room]


class GuestRoster(_IdStore[Guest]):
    def at_table(self, table_id: int) -> list[Guest]:
        return [g for g in self if g.table_id == table_id]

    def unassigned(self) -> list[Guest]:
        return [g for g in self if g.table_id is None]


class FloorPlanStore:
    """État de travail du plan de salle pour un événement.

    Réhydraté en bloc à chaque chargement ; modifié ensuite uniquement par
    le moteur d'affectation et l'import.
    """

    def __init__(self) -> None:
        self.event: Optional[EventInfo] = None
        self.tables = TableStore()
        self.guests = GuestRoster()

    @property
    def is_loaded(self) -> bool:
        return self.event is not None

    def require_event(self) -> EventInfo:
        if not self.event:
            raise RuntimeError("Aucun événement ouvert")
        return self.event

    def hydrate(self, doc: dict) -> None:
        """Remplace tout l'état par le document d'événement fourni."""
        event = EventInfo.from_doc(doc)
        tables: list[Table] = []
        guests: list[Guest] = []

        for raw_table in doc.get("tables") or []:
            table = Table.from_doc(raw_table)
            tables.append(table)
            for raw_guest in raw_table.get("guests") or []:
                guests.append(Guest.from_doc(raw_guest, table_id=table.id))

        # hôtes non placés renvoyés au niveau de l'événement
        for raw_guest in doc.get("guests") or []:
            guests.append(Guest.from_doc(raw_guest, table_id=None))

        # construit à part : un document invalide laisse l'état courant intact
        new_tables = TableStore()
        new_tables.replace_all(tables)
        new_guests = GuestRoster()
        new_guests.replace_all(guests)

        self.event = event
        self.tables = new_tables
        self.guests = new_guests
        log.info(
            "Événement %s chargé : %d table(s), %d hôte(s)",
            event.id, len(self.tables), len(self.guests),
        )

    def clear(self) -> None:
        self.event = None
        self.tables.replace_all([])
        self.guests.replace_all([])
