from datetime import date
from pathlib import Path
import sys

import pytest
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from floorplan.domain.models import GuestType, Reservation
from floorplan.domain.store import FloorPlanStore
from floorplan.services.import_service import ImportService


def _make_store(guests=None):
    store = FloorPlanStore()
    store.hydrate({
        "id": 3,
        "date": "2026-07-04",
        "name": "Oslava",
        "paidCount": 10,
        "freeCount": 2,
        "tables": [],
        "guests": guests or [],
    })
    return store


RESERVATIONS = [
    {
        "id": 11,
        "date": "2026-07-04T00:00:00.000Z",
        "status": "PAID",
        "contactName": "Novák",
        "contactNationality": "CZ",
        "persons": [{"type": "adult"}, {"type": "child"}, {"type": "infant", "menu": "kaše"}],
    },
    {
        "id": 12,
        "date": "2026-07-05",
        "status": "PAID",
        "contactName": "Jiný den",
        "persons": [{"type": "adult"}],
    },
]


def test_import_reservation_creates_one_guest_per_person():
    store = _make_store()
    result = ImportService(store).import_reservations(RESERVATIONS)

    guests = list(store.guests)
    assert result.guests_added == 3
    assert result.reservations_matched == 1
    assert [g.name for g in guests] == ["Novák - Osoba 1", "Novák - Osoba 2", "Novák - Osoba 3"]
    assert [g.type for g in guests] == [GuestType.ADULT, GuestType.CHILD, GuestType.CHILD]
    assert all(g.table_id is None and not g.is_present for g in guests)
    assert all(g.is_paid and g.nationality == "CZ" for g in guests)
    assert [(g.reservation_id, g.person_index) for g in guests] == [(11, 0), (11, 1), (11, 2)]


def test_reservation_without_persons_creates_contact_guest():
    store = _make_store()
    ImportService(store).import_reservations([
        {"id": 20, "date": "2026-07-04", "status": "received", "contactName": "Svoboda"},
    ])

    (guest,) = list(store.guests)
    assert guest.name == "Svoboda"
    assert guest.type is GuestType.ADULT
    assert guest.is_paid is False
    assert guest.reservation_id == 20
    assert guest.person_index is None


def test_paid_status_is_case_insensitive():
    store = _make_store()
    ImportService(store).import_reservations([
        {"id": 21, "date": "2026-07-04", "status": "paid", "contactName": "Dvořák"},
    ])

    assert next(iter(store.guests)).is_paid


def test_import_ids_continue_after_existing_guests():
    store = _make_store(guests=[{"id": 8, "name": "Ruční host", "type": "adult"}])
    ImportService(store).import_reservations(RESERVATIONS)

    assert store.guests.ids() == [8, 9, 10, 11]


def test_repeated_import_is_not_deduplicated():
    store = _make_store()
    importer = ImportService(store)

    importer.import_reservations(RESERVATIONS)
    importer.import_reservations(RESERVATIONS)

    assert len(store.guests) == 6
    assert store.guests.ids() == [1, 2, 3, 4, 5, 6]


def test_no_reservation_on_event_date():
    store = _make_store()
    result = ImportService(store).import_reservations(RESERVATIONS, event_date=date(2026, 1, 1))

    assert result.guests_added == 0
    assert result.reservations_matched == 0
    assert len(store.guests) == 0


def test_import_accepts_reservation_objects():
    store = _make_store()
    reservations = [Reservation.from_doc(r) for r in RESERVATIONS]

    result = ImportService(store).import_reservations(reservations, event_date="2026-07-05")

    assert result.guests_added == 1
    assert next(iter(store.guests)).name == "Jiný den - Osoba 1"


def test_import_excel_reads_guest_columns(tmp_path):
    store = _make_store()
    importer = ImportService(store)

    excel_path = tmp_path / "hoste.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["Jméno", "Typ", "Národnost", "Zaplaceno (Ano/Ne)"])
    ws.append(["Alice", "adult", "FR", "Ano"])
    ws.append(["Bob", "Dítě", "", "ne"])
    ws.append([None, None, None, None])
    ws.append(["", "child", "DE", "ano"])
    wb.save(excel_path)

    added = importer.import_from_excel(excel_path)
    guests = list(store.guests)

    assert added == 2
    assert [g.name for g in guests] == ["Alice", "Bob"]
    assert guests[0].is_paid and guests[0].nationality == "FR"
    assert guests[1].type is GuestType.CHILD and guests[1].nationality is None
    assert not guests[1].is_paid
    assert all(g.reservation_id is None for g in guests)


def test_import_excel_booleans_are_case_insensitive(tmp_path):
    store = _make_store()
    importer = ImportService(store)

    excel_path = tmp_path / "hoste.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["Nom", "Payé"])
    ws.append(["Claire", "OUI"])
    ws.append(["Denis", "o"])
    ws.append(["Emma", "N"])
    wb.save(excel_path)

    importer.import_from_excel(excel_path)

    assert [g.is_paid for g in store.guests] == [True, True, False]


def test_import_excel_requires_name_column(tmp_path):
    store = _make_store()
    excel_path = tmp_path / "hoste.xlsx"
    wb = Workbook()
    wb.active.append(["Typ", "Národnost"])
    wb.save(excel_path)

    with pytest.raises(ValueError):
        ImportService(store).import_from_excel(excel_path)


def test_import_from_ui_skips_blank_names():
    store = _make_store()
    added = ImportService(store).import_from_ui([
        {"name": "Eva", "type": "enfant", "nationality": "SK", "is_paid": True},
        {"name": "   "},
        {"name": "Jan"},
    ])

    assert added == 2
    eva, jan = list(store.guests)
    assert eva.type is GuestType.CHILD and eva.is_paid
    assert jan.type is GuestType.ADULT and jan.nationality is None


def test_import_without_store_fails():
    with pytest.raises(RuntimeError):
        ImportService().import_reservations(RESERVATIONS)
