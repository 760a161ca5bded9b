from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from floorplan.core.constants import ROOM_LABELS, UNASSIGNED_KEY

# --- Énumérations

class Room(str, Enum):
    ROUBENKA = "roubenka"
    TERASA = "terasa"
    STODOLKA = "stodolka"
    CELY_AREAL = "cely_areal"

    @property
    def label(self) -> str:
        return ROOM_LABELS[self.value]


class GuestType(str, Enum):
    ADULT = "adult"
    CHILD = "child"

    @classmethod
    def from_person_type(cls, value: str | None) -> "GuestType":
        # adulte/enfant est la seule taxonomie côté hôte : infant -> child
        if value in ("child", "infant"):
            return cls.CHILD
        return cls.ADULT


def parse_date(value: Any) -> date:
    """Ramène une date API (ISO, datetime ou date) au jour calendaire."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        raise ValueError("Date manquante")
    return date.fromisoformat(text[:10])


# --- Entités (in-memory)

@dataclass
class Table:
    id: int
    name: str
    room: Room
    capacity: int
    # champs du backend non gérés ici (position, etc.), renvoyés tels quels
    extra: dict[str, Any] = field(default_factory=dict)

    HANDLED_KEYS = ("id", "tableName", "room", "capacity", "eventId", "guests")

    def to_doc(self, event_id: int | None = None) -> dict:
        doc = dict(self.extra)
        doc.update(
            id=self.id,
            tableName=self.name,
            room=self.room.value,
            capacity=self.capacity,
        )
        if event_id is not None:
            doc["eventId"] = event_id
        return doc

    @classmethod
    def from_doc(cls, doc: dict) -> "Table":
        return cls(
            id=int(doc["id"]),
            name=str(doc.get("tableName") or ""),
            room=Room(doc.get("room") or Room.CELY_AREAL.value),
            capacity=int(doc.get("capacity") or 1),
            extra={k: v for k, v in doc.items() if k not in cls.HANDLED_KEYS},
        )

@dataclass
class Guest:
    id: int
    name: str
    type: GuestType = GuestType.ADULT
    nationality: Optional[str] = None
    is_paid: bool = False
    is_present: bool = False
    table_id: Optional[int] = None
    reservation_id: Optional[int] = None
    person_index: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)

    HANDLED_KEYS = (
        "id", "name", "type", "nationality", "isPaid", "isPresent",
        "eventTableId", "reservationId", "personIndex",
    )

    @property
    def is_assigned(self) -> bool:
        return self.table_id is not None

    def to_doc(self) -> dict:
        doc = dict(self.extra)
        doc.update(
            id=self.id,
            name=self.name,
            type=self.type.value,
            nationality=self.nationality,
            isPaid=self.is_paid,
            isPresent=self.is_present,
            eventTableId=self.table_id,
        )
        if self.reservation_id is not None:
            doc["reservationId"] = self.reservation_id
        if self.person_index is not None:
            doc["personIndex"] = self.person_index
        return doc

    @classmethod
    def from_doc(cls, doc: dict, table_id: int | None = None) -> "Guest":
        reservation_id = doc.get("reservationId")
        person_index = doc.get("personIndex")
        return cls(
            id=int(doc["id"]),
            name=str(doc.get("name") or ""),
            type=GuestType.from_person_type(doc.get("type")),
            nationality=doc.get("nationality") or None,
            is_paid=bool(doc.get("isPaid", False)),
            is_present=bool(doc.get("isPresent", False)),
            table_id=table_id,
            reservation_id=int(reservation_id) if reservation_id is not None else None,
            person_index=int(person_index) if person_index is not None else None,
            extra={k: v for k, v in doc.items() if k not in cls.HANDLED_KEYS},
        )

@dataclass
class EventInfo:
    """En-tête de l'événement ; ``extra`` garde les champs que l'on ne gère pas
    pour pouvoir renvoyer l'objet complet à l'enregistrement."""
    id: int
    date: date
    name: str = ""
    paid_count: int = 0
    free_count: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    HANDLED_KEYS = ("id", "date", "name", "paidCount", "freeCount", "tables", "guests")

    @classmethod
    def from_doc(cls, doc: dict) -> "EventInfo":
        return cls(
            id=int(doc["id"]),
            date=parse_date(doc.get("date")),
            name=str(doc.get("name") or ""),
            paid_count=int(doc.get("paidCount") or 0),
            free_count=int(doc.get("freeCount") or 0),
            extra={k: v for k, v in doc.items() if k not in cls.HANDLED_KEYS},
        )

    def to_doc(self) -> dict:
        doc = dict(self.extra)
        doc.update(
            id=self.id,
            date=self.date.isoformat(),
            name=self.name,
            paidCount=self.paid_count,
            freeCount=self.free_count,
        )
        return doc

# --- Réservations (entrée en lecture seule)

@dataclass
class ReservationPerson:
    type: str = "adult"
    menu: Optional[str] = None

@dataclass
class Reservation:
    id: int
    date: date
    contact_name: str
    status: str = ""
    contact_nationality: Optional[str] = None
    persons: list[ReservationPerson] = field(default_factory=list)

    @property
    def is_paid(self) -> bool:
        return self.status.strip().upper() == "PAID"

    @classmethod
    def from_doc(cls, doc: dict) -> "Reservation":
        return cls(
            id=int(doc["id"]),
            date=parse_date(doc.get("date")),
            contact_name=str(doc.get("contactName") or "").strip(),
            status=str(doc.get("status") or ""),
            contact_nationality=doc.get("contactNationality") or None,
            persons=[
                ReservationPerson(type=str(p.get("type") or "adult"), menu=p.get("menu"))
                for p in (doc.get("persons") or [])
            ],
        )

# --- Cibles de dépôt (glisser-déposer)

@dataclass(frozen=True)
class OnTable:
    table_id: int

@dataclass(frozen=True)
class OnGuest:
    guest_id: int

@dataclass(frozen=True)
class OnUnassigned:
    pass

DropTarget = Union[OnTable, OnGuest, OnUnassigned]


def guest_key(guest_id: int) -> str:
    return f"guest-{guest_id}"

def table_key(table_id: int) -> str:
    return f"table-{table_id}"

def parse_guest_key(key: str | None) -> int | None:
    if not key or not key.startswith("guest-"):
        return None
    try:
        return int(key[len("guest-"):])
    except ValueError:
        return None

def parse_drop_target(key: str | None) -> DropTarget | None:
    """``table-<id>`` / ``guest-<id>`` / ``unassigned`` -> cible typée, sinon None."""
    if not key:
        return None
    if key == UNASSIGNED_KEY:
        return OnUnassigned()
    prefix, _, raw_id = key.partition("-")
    try:
        ident = int(raw_id)
    except ValueError:
        return None
    if prefix == "table":
        return OnTable(ident)
    if prefix == "guest":
        return OnGuest(ident)
    return None
