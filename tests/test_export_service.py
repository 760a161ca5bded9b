import sys
from pathlib import Path

import pytest
import reportlab
from openpyxl import load_workbook
from reportlab.pdfbase import pdfmetrics

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from floorplan.domain.store import FloorPlanStore
from floorplan.services.export_service import ExportService, resolve_pdf_fonts


def _store():
    store = FloorPlanStore()
    store.hydrate({
        "id": 2,
        "date": "2026-09-12",
        "name": "Firemni vecirek",
        "paidCount": 3,
        "freeCount": 0,
        "tables": [
            {"id": 1, "tableName": "Table 1", "room": "terasa", "capacity": 1, "guests": [
                {"id": 1, "name": "Alice", "type": "adult", "nationality": "FR", "isPaid": True},
                {"id": 2, "name": "Bob", "type": "child", "isPaid": False},
            ]},
            {"id": 2, "tableName": "Table 2", "room": "roubenka", "capacity": 6, "guests": []},
        ],
        "guests": [{"id": 3, "name": "Chloe", "type": "adult", "nationality": "DE", "isPaid": True}],
    })
    return store


def test_export_floor_plan_excel(tmp_path):
    output = ExportService(_store()).export_floor_plan_excel(tmp_path / "plan.xlsx")

    wb = load_workbook(output)
    assert wb.sheetnames == ["Plan par salle", "Non placés", "Résumé"]

    rows = list(wb["Plan par salle"].iter_rows(min_row=2, values_only=True))
    # salles dans l'ordre de l'énumération : roubenka avant terasa
    assert rows[0][:4] == ("Roubenka", "Table 2", "0 / 6", "-")
    assert rows[1][:4] == ("Terasa", "Table 1", "2 / 1", "Alice")
    assert rows[1][6] == "Oui"
    assert rows[2][3] == "Bob"
    assert rows[2][4] == "Dítě"

    pool = list(wb["Non placés"].iter_rows(min_row=2, values_only=True))
    assert pool == [("Chloe", "Dospělý", "DE", "Oui")]

    summary = dict(wb["Résumé"].iter_rows(values_only=True))
    assert summary["Hôtes (liste)"] == 3
    assert summary["Payants (manuel)"] == 3
    assert summary["Écart"] == "Non"


def test_export_table_cards_pdf(tmp_path):
    output = ExportService(_store()).export_table_cards_pdf(tmp_path / "cards.pdf")

    assert output.exists()
    assert output.read_bytes().startswith(b"%PDF")


def test_export_empty_plan_pdf(tmp_path):
    store = FloorPlanStore()
    store.hydrate({"id": 5, "date": "2026-09-12", "tables": [], "guests": []})

    output = ExportService(store).export_table_cards_pdf(tmp_path / "empty.pdf")

    assert output.read_bytes().startswith(b"%PDF")


def test_export_requires_open_event(tmp_path):
    with pytest.raises(RuntimeError):
        ExportService(FloorPlanStore()).export_floor_plan_excel(tmp_path / "plan.xlsx")


def test_pdf_fonts_fall_back_to_helvetica(tmp_path):
    missing = tmp_path / "absente.ttf"

    assert resolve_pdf_fonts([(missing, missing)]) == ("Helvetica", "Helvetica-Bold")


def test_pdf_fonts_register_truetype():
    vera = Path(reportlab.__file__).parent / "fonts" / "Vera.ttf"
    if not vera.is_file():
        pytest.skip("police Vera absente de cette installation de reportlab")

    regular, bold = resolve_pdf_fonts([(vera, vera.with_name("VeraBd.ttf"))])

    assert regular == "Vera"
    assert {regular, bold} <= set(pdfmetrics.getRegisteredFontNames())


def test_export_cards_with_czech_names(tmp_path):
    store = FloorPlanStore()
    store.hydrate({
        "id": 4,
        "date": "2026-09-12",
        "name": "Oslava",
        "tables": [{"id": 1, "tableName": "Stůl č. 1", "room": "cely_areal", "capacity": 2, "guests": [
            {"id": 1, "name": "Antonín Dvořák"}, {"id": 2, "name": "Bedřich Smetana"},
        ]}],
        "guests": [],
    })

    output = ExportService(store).export_table_cards_pdf(tmp_path / "cards.pdf")

    assert output.read_bytes().startswith(b"%PDF")
