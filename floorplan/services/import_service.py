from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable

from openpyxl import load_workbook

from floorplan.domain.models import Guest, GuestType, Reservation, parse_date
from floorplan.domain.store import FloorPlanStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    guests_added: int
    reservations_matched: int = 0

    def message(self) -> str:
        return f"{self.guests_added} hôte(s) importé(s) depuis {self.reservations_matched} réservation(s)"


class ImportService:
    """Service d'import des hôtes (réservations, Excel & UI).

    Tous les hôtes importés arrivent non placés, avec des ids ``max + 1``.
    L'import est additif : aucune déduplication avec un import précédent.
    """

    def __init__(self, store: FloorPlanStore | None = None) -> None:
        self.store = store

    # --- public API ------------------------------------------------------
    def import_reservations(self, reservations: Iterable[Reservation | dict], event_date: date | str | None = None) -> ImportResult:
        """Crée les hôtes des réservations tombant le jour de l'événement.

        - réservation sans personne : un adulte au nom du contact
        - N personnes : N hôtes « <contact> - Osoba <i> », infant -> child
        """

        store = self._require_store()
        day = parse_date(event_date) if event_date is not None else store.require_event().date

        matched = [r for r in map(self._as_reservation, reservations) if r.date == day]

        added = 0
        for reservation in matched:
            if not reservation.persons:
                self._append(
                    name=reservation.contact_name,
                    type=GuestType.ADULT,
                    nationality=reservation.contact_nationality,
                    is_paid=reservation.is_paid,
                    reservation_id=reservation.id,
                )
                added += 1
                continue

            for index, person in enumerate(reservation.persons):
                self._append(
                    name=f"{reservation.contact_name} - Osoba {index + 1}",
                    type=GuestType.from_person_type(person.type),
                    nationality=reservation.contact_nationality,
                    is_paid=reservation.is_paid,
                    reservation_id=reservation.id,
                    person_index=index,
                )
                added += 1

        result = ImportResult(guests_added=added, reservations_matched=len(matched))
        log.info("Import réservations du %s : %s", day.isoformat(), result.message())
        return result

    def import_from_excel(self, file_path: str | Path) -> int:
        """Importe une liste d'hôtes depuis un fichier Excel.

        Colonnes reconnues (l'ordre est libre) :
        - Jméno / Nom / Name (obligatoire)
        - Typ / Type (adult, child, dospělý, dítě, enfant…)
        - Národnost / Nationalité
        - Zaplaceno / Payé (Oui/Non, Ano/Ne…)
        """

        self._require_store()
        wb = load_workbook(filename=file_path)
        ws = wb.active

        rows = list(ws.iter_rows(values_only=True))
        if not rows:
            return 0

        header = [self._normalize_header(h) for h in rows[0]]
        col_idx = self._map_columns(header)

        added = 0
        for raw in rows[1:]:
            if not raw or all(v is None or str(v).strip() == "" for v in raw):
                continue

            name = self._read_cell(raw, col_idx.get("name"))
            if not name:
                # ligne sans nom : on ignore
                continue

            self._append(
                name=name,
                type=self._parse_type(self._read_cell(raw, col_idx.get("type"))),
                nationality=self._read_cell(raw, col_idx.get("nationality")) or None,
                is_paid=self._parse_bool(self._raw_cell(raw, col_idx.get("is_paid"))),
            )
            added += 1

        log.info("Import Excel %s : %d hôte(s)", Path(file_path).name, added)
        return added

    def import_from_ui(self, rows: list[dict]) -> int:
        """Importe des hôtes fournis par l'UI.

        Chaque dict doit contenir ``name`` et, optionnellement, ``type``,
        ``nationality`` / ``is_paid``.
        """

        self._require_store()
        added = 0

        for row in rows:
            name = str(row.get("name", "")).strip()
            if not name:
                continue
            self._append(
                name=name,
                type=self._parse_type(str(row.get("type") or "")),
                nationality=str(row.get("nationality") or "").strip() or None,
                is_paid=bool(row.get("is_paid", False)),
            )
            added += 1

        return added

    # --- helpers ---------------------------------------------------------
    def _require_store(self) -> FloorPlanStore:
        if not self.store:
            raise RuntimeError("Plan de salle non fourni pour l'import")
        return self.store

    def _append(self, **fields) -> Guest:
        store = self._require_store()
        guest = Guest(id=store.guests.next_id(), **fields)
        return store.guests.add(guest)

    def _as_reservation(self, value: Reservation | dict) -> Reservation:
        return value if isinstance(value, Reservation) else Reservation.from_doc(value)

    def _normalize_header(self, value) -> str:
        if value is None:
            return ""
        text = str(value).strip().lower()
        text = "".join(c for c in unicodedata.normalize("NFD", text) if unicodedata.category(c) != "Mn")
        # Ignore les indications du type "(oui/non)" dans l'en-tête
        if "(" in text:
            text = text.split("(", 1)[0].strip()
        return text

    def _map_columns(self, header: list[str]) -> dict[str, int]:
        mapping = {
            "name": {"jmeno", "nom", "name", "host", "invite"},
            "type": {"typ", "type", "categorie"},
            "nationality": {"narodnost", "nationalite", "nationality", "pays"},
            "is_paid": {"zaplaceno", "paye", "paid", "platici"},
        }

        idx = {key: None for key in mapping}
        for i, col in enumerate(header):
            for field, names in mapping.items():
                if col.replace(" ", "") in names:
                    idx[field] = i
        if idx["name"] is None:
            raise ValueError("Colonne obligatoire manquante dans l'Excel : nom de l'hôte")
        return idx

    def _parse_type(self, value: str) -> GuestType:
        text = self._normalize_header(value)
        if text in {"child", "infant", "dite", "enfant", "kid", "miminko"}:
            return GuestType.CHILD
        return GuestType.ADULT

    def _parse_bool(self, value) -> bool:
        if value is None:
            return False
        if isinstance(value, (int, float)):
            return bool(value)
        text = str(value).strip().casefold()
        truthy = {"oui", "yes", "true", "1", "y", "o", "ano", "a"}
        if text in truthy:
            return True
        return False

    def _read_cell(self, row: tuple, index: int | None) -> str:
        if index is None or index >= len(row):
            return ""
        value = row[index]
        return "" if value is None else str(value).strip()

    def _raw_cell(self, row: tuple, index: int | None):
        if index is None or index >= len(row):
            return None
        return row[index]
