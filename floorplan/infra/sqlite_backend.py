from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from pathlib import Path

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from floorplan.core.errors import BackendError
from floorplan.domain.models import Guest, GuestType, Table, parse_date
from floorplan.infra.db import Base, make_engine, make_session_factory
from floorplan.infra.models_orm import (
    EventGuestORM,
    EventORM,
    EventTableORM,
    ReservationORM,
    ReservationPersonORM,
)

log = logging.getLogger(__name__)


class SqliteBackend:
    """
    Backend local (fichier SQLite) exposant le même contrat que l'API :
    - fetch_event / replace_event : lecture et remplacement complet du plan
    - list_reservations : réservations pour l'import d'hôtes
    - create_event / add_reservation : alimentation de la base locale
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.engine = make_engine(self.db_path)
        self.Session = make_session_factory(self.engine)
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session_scope(self):
        s = self.Session()
        try:
            yield s
            s.commit()
        except SQLAlchemyError as exc:
            s.rollback()
            raise BackendError(f"Erreur base locale : {exc}") from exc
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    def close(self) -> None:
        self.engine.dispose()

    # --- événements
    def list_events(self) -> list[dict]:
        with self.session_scope() as s:
            rows = s.scalars(select(EventORM).order_by(EventORM.date.desc(), EventORM.id.desc())).all()
            return [{"id": e.id, "name": e.name, "date": e.date.isoformat()} for e in rows]

    def create_event(self, name: str, event_date: date | str, paid_count: int = 0, free_count: int = 0, **extra) -> int:
        with self.session_scope() as s:
            evt = EventORM(
                name=name.strip(),
                date=parse_date(event_date),
                paid_count=int(paid_count),
                free_count=int(free_count),
                extra=extra,
            )
            s.add(evt)
            s.flush()
            return evt.id

    def fetch_event(self, event_id: int) -> dict:
        with self.session_scope() as s:
            evt = s.get(EventORM, event_id)
            if not evt:
                raise BackendError(f"Événement {event_id} introuvable", status_code=404)
            return self._event_to_doc(evt)

    def replace_event(self, event_id: int, doc: dict) -> dict:
        """Remplace en une transaction l'en-tête, les tables et les hôtes."""
        with self.session_scope() as s:
            evt = s.get(EventORM, event_id)
            if not evt:
                raise BackendError(f"Événement {event_id} introuvable", status_code=404)

            evt.name = str(doc.get("name") or evt.name)
            if doc.get("date"):
                evt.date = parse_date(doc["date"])
            evt.paid_count = int(doc.get("paidCount") or 0)
            evt.free_count = int(doc.get("freeCount") or 0)
            evt.extra = {
                k: v for k, v in doc.items()
                if k not in ("id", "name", "date", "paidCount", "freeCount", "tables", "guests")
            }

            s.execute(delete(EventGuestORM).where(EventGuestORM.event_id == event_id))
            s.execute(delete(EventTableORM).where(EventTableORM.event_id == event_id))

            for raw_table in doc.get("tables") or []:
                table_id = int(raw_table["id"])
                s.add(EventTableORM(
                    event_id=event_id,
                    table_id=table_id,
                    table_name=str(raw_table.get("tableName") or ""),
                    room=str(raw_table.get("room")),
                    capacity=int(raw_table.get("capacity") or 1),
                    extra={k: v for k, v in raw_table.items() if k not in Table.HANDLED_KEYS},
                ))
                for raw_guest in raw_table.get("guests") or []:
                    s.add(self._guest_row(event_id, raw_guest, table_id))

            for raw_guest in doc.get("guests") or []:
                s.add(self._guest_row(event_id, raw_guest, None))

            s.flush()
            s.expire(evt)
            log.info("Plan de l'événement %s remplacé", event_id)
            return self._event_to_doc(evt)

    # --- réservations
    def add_reservation(self, doc: dict) -> int:
        with self.session_scope() as s:
            res = ReservationORM(
                date=parse_date(doc.get("date")),
                status=str(doc.get("status") or "RECEIVED"),
                contact_name=str(doc.get("contactName") or ""),
                contact_nationality=doc.get("contactNationality"),
                persons=[
                    ReservationPersonORM(position=i, type=str(p.get("type") or "adult"), menu=p.get("menu"))
                    for i, p in enumerate(doc.get("persons") or [])
                ],
            )
            s.add(res)
            s.flush()
            return res.id

    def list_reservations(self) -> list[dict]:
        with self.session_scope() as s:
            rows = s.scalars(select(ReservationORM).order_by(ReservationORM.date, ReservationORM.id)).all()
            return [
                {
                    "id": r.id,
                    "date": r.date.isoformat(),
                    "status": r.status,
                    "contactName": r.contact_name,
                    "contactNationality": r.contact_nationality,
                    "persons": [{"type": p.type, "menu": p.menu} for p in r.persons],
                }
                for r in rows
            ]

    # --- helpers
    def _guest_row(self, event_id: int, raw: dict, table_id: int | None) -> EventGuestORM:
        return EventGuestORM(
            event_id=event_id,
            guest_id=int(raw["id"]),
            name=str(raw.get("name") or ""),
            type=GuestType.from_person_type(raw.get("type")).value,
            nationality=raw.get("nationality"),
            is_paid=bool(raw.get("isPaid", False)),
            is_present=bool(raw.get("isPresent", False)),
            table_id=table_id,
            reservation_id=raw.get("reservationId"),
            person_index=raw.get("personIndex"),
            extra={k: v for k, v in raw.items() if k not in Guest.HANDLED_KEYS},
        )

    def _guest_to_doc(self, g: EventGuestORM) -> dict:
        doc = dict(g.extra or {})
        doc.update(
            id=g.guest_id,
            name=g.name,
            type=g.type,
            nationality=g.nationality,
            isPaid=g.is_paid,
            isPresent=g.is_present,
            eventTableId=g.table_id,
        )
        if g.reservation_id is not None:
            doc["reservationId"] = g.reservation_id
        if g.person_index is not None:
            doc["personIndex"] = g.person_index
        return doc

    def _event_to_doc(self, evt: EventORM) -> dict:
        by_table: dict[int, list[dict]] = {}
        unassigned: list[dict] = []
        for g in evt.guests:
            if g.table_id is None:
                unassigned.append(self._guest_to_doc(g))
            else:
                by_table.setdefault(g.table_id, []).append(self._guest_to_doc(g))

        doc = dict(evt.extra or {})
        doc.update(
            id=evt.id,
            name=evt.name,
            date=evt.date.isoformat(),
            paidCount=evt.paid_count,
            freeCount=evt.free_count,
            tables=[
                {
                    **(t.extra or {}),
                    "id": t.table_id,
                    "eventId": evt.id,
                    "tableName": t.table_name,
                    "room": t.room,
                    "capacity": t.capacity,
                    "guests": by_table.get(t.table_id, []),
                }
                for t in evt.tables
            ],
            guests=unassigned,
        )
        return doc
