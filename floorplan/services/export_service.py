from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from floorplan.core.constants import GUEST_TYPE_LABELS
from floorplan.domain.models import Guest, Room
from floorplan.domain.store import FloorPlanStore
from floorplan.services.reconciliation import headcount_summary, table_occupancy

log = logging.getLogger(__name__)

# Polices TrueType couvrant le tchèque (ř, ů, č, ě) : (normale, grasse)
PDF_FONT_CANDIDATES: list[tuple[Path, Path]] = [
    (Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"), Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf")),
    (Path("/usr/share/fonts/dejavu/DejaVuSans.ttf"), Path("/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf")),
    (Path("/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf"), Path("/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf")),
    (Path("/Library/Fonts/Arial Unicode.ttf"), Path("/Library/Fonts/Arial Unicode.ttf")),
    (Path("C:/Windows/Fonts/arial.ttf"), Path("C:/Windows/Fonts/arialbd.ttf")),
]


def _register_ttf(path: Path) -> str:
    name = path.stem
    if name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(name, str(path)))
    return name


def resolve_pdf_fonts(candidates: list[tuple[Path, Path]] | None = None) -> tuple[str, str]:
    """Enregistre la première police TrueType disponible ; Helvetica en dernier recours
    (sans les caractères hors Latin-1)."""
    if candidates is None:
        candidates = PDF_FONT_CANDIDATES
    for regular, bold in candidates:
        if not regular.is_file():
            continue
        regular_name = _register_ttf(regular)
        bold_name = _register_ttf(bold) if bold.is_file() else regular_name
        return regular_name, bold_name
    log.warning("Aucune police TrueType trouvée, les accents tchèques seront mal rendus")
    return "Helvetica", "Helvetica-Bold"


@dataclass
class TableCard:
    table_name: str
    room_label: str
    ratio: str
    over_capacity: bool
    guest_names: list[str]


class ExportService:
    """Service d'export (Excel, PDF cartes de table)."""

    def __init__(self, store: FloorPlanStore | None = None) -> None:
        self.store = store

    def export_floor_plan_excel(self, output_path: str | Path) -> Path:
        """Génère un Excel du plan de salle (par salle, non placés, résumé)."""

        store = self._require_store()
        output_path = Path(output_path)
        event = store.require_event()

        wb = Workbook()

        # Vue par salle / table
        ws_plan = wb.active
        ws_plan.title = "Plan par salle"
        ws_plan.append(["Salle", "Table", "Occupation", "Hôte", "Type", "Nationalité", "Payé"])
        for cell in ws_plan[1]:
            cell.font = Font(bold=True)

        for room in Room:
            for table in store.tables.in_room(room):
                occ = table_occupancy(store, table.id)
                guests = store.guests.at_table(table.id)
                if not guests:
                    ws_plan.append([room.label, table.name, occ.ratio_label, "-", "", "", ""])
                    continue
                for guest in guests:
                    ws_plan.append([room.label, table.name, occ.ratio_label, *self._guest_cells(guest)])

        ws_plan.freeze_panes = "A2"

        # Hôtes non placés
        ws_pool = wb.create_sheet("Non placés")
        ws_pool.append(["Hôte", "Type", "Nationalité", "Payé"])
        for guest in store.guests.unassigned():
            ws_pool.append(self._guest_cells(guest))

        # Résumé
        summary = headcount_summary(store)
        ws_summary = wb.create_sheet("Résumé")
        ws_summary.append(["Événement", event.name])
        ws_summary.append(["Date", event.date.isoformat()])
        ws_summary.append(["Tables", len(store.tables)])
        ws_summary.append(["Hôtes (liste)", summary.computed_total])
        ws_summary.append(["Payants (liste)", summary.computed_paid])
        ws_summary.append(["Gratuits (liste)", summary.computed_free])
        ws_summary.append(["Payants (manuel)", summary.manual_paid])
        ws_summary.append(["Gratuits (manuel)", summary.manual_free])
        ws_summary.append(["Écart", "Oui" if summary.has_discrepancy else "Non"])

        wrap_align = Alignment(wrap_text=True, vertical="top")
        for ws in (ws_plan, ws_pool):
            for row in ws.iter_rows(min_row=2):
                for cell in row:
                    cell.alignment = wrap_align

        wb.save(output_path)
        return output_path

    def export_table_cards_pdf(self, output_path: str | Path) -> Path:
        """
        Génère un PDF avec une carte par table :
        - nom de la table et salle
        - occupation (places occupées / capacité)
        - liste des hôtes assis
        """
        store = self._require_store()
        output_path = Path(output_path)
        event = store.require_event()

        cards = self._build_cards(store)
        self._render_cards(output_path=output_path, event_name=event.name or event.date.isoformat(), cards=cards)
        return output_path

    # --- helpers ---------------------------------------------------------
    def _require_store(self) -> FloorPlanStore:
        if not self.store:
            raise RuntimeError("Plan de salle non fourni pour l'export")
        return self.store

    def _guest_cells(self, guest: Guest) -> list:
        return [
            guest.name,
            GUEST_TYPE_LABELS.get(guest.type.value, guest.type.value),
            guest.nationality or "",
            "Oui" if guest.is_paid else "Non",
        ]

    def _build_cards(self, store: FloorPlanStore) -> list[TableCard]:
        cards: list[TableCard] = []
        for room in Room:
            for table in store.tables.in_room(room):
                occ = table_occupancy(store, table.id)
                cards.append(
                    TableCard(
                        table_name=table.name,
                        room_label=room.label,
                        ratio=occ.ratio_label,
                        over_capacity=occ.over_capacity,
                        guest_names=[g.name for g in store.guests.at_table(table.id)],
                    )
                )
        return cards

    def _render_cards(self, *, output_path: Path, event_name: str, cards: list[TableCard]) -> None:
        c = canvas.Canvas(str(output_path), pagesize=A4)
        font, font_bold = resolve_pdf_fonts()
        page_width, page_height = A4

        card_width = 90 * mm
        card_height = 120 * mm
        margin = 10 * mm
        h_spacing = 5 * mm
        v_spacing = 5 * mm

        cols = max(1, int((page_width - 2 * margin + h_spacing) // (card_width + h_spacing)))
        rows = max(1, int((page_height - 2 * margin + v_spacing) // (card_height + v_spacing)))
        cards_per_page = max(1, cols * rows)

        if not cards:
            c.setFont(font, 12)
            c.drawString(margin, page_height - margin - 12, "Aucune table dans le plan.")

        for idx, card in enumerate(cards):
            pos_in_page = idx % cards_per_page
            if idx and pos_in_page == 0:
                c.showPage()

            col = pos_in_page % cols
            row = pos_in_page // cols

            x = margin + col * (card_width + h_spacing)
            y = page_height - margin - (row + 1) * card_height - row * v_spacing

            self._draw_card(c=c, origin_x=x, origin_y=y, width=card_width, height=card_height,
                            card=card, event_name=event_name, font=font, font_bold=font_bold)

        c.save()

    def _draw_card(
        self,
        *,
        c: canvas.Canvas,
        origin_x: float,
        origin_y: float,
        width: float,
        height: float,
        card: TableCard,
        event_name: str,
        font: str,
        font_bold: str,
    ) -> None:
        padding = 6 * mm
        header_height = 18 * mm
        line_height = 5 * mm

        c.saveState()
        c.translate(origin_x, origin_y)

        # Contour
        c.setLineWidth(1)
        c.roundRect(0, 0, width, height, radius=4 * mm, stroke=1, fill=0)

        # Bandeau de salle
        c.setFillColor(colors.HexColor("#b86d1f"))
        c.rect(0, height - header_height, width, header_height, stroke=0, fill=1)
        c.setFillColor(colors.white)
        c.setFont(font_bold, 14)
        c.drawString(padding, height - 9 * mm, card.table_name)
        c.setFont(font, 9)
        c.drawString(padding, height - 14 * mm, f"{card.room_label} | {event_name}")

        # Occupation (indicative : pas de blocage au-delà de la capacité)
        c.setFillColor(colors.HexColor("#ffd84a") if card.over_capacity else colors.white)
        c.setFont(font_bold, 10)
        c.drawRightString(width - padding, height - 9 * mm, card.ratio)

        # Hôtes
        y = height - header_height - padding
        c.setFillColor(colors.black)
        c.setFont(font, 10)
        max_lines = int((y - padding) // line_height)
        names = card.guest_names
        if not names:
            c.drawString(padding, y, "-")
        for i, name in enumerate(names):
            if i == max_lines - 1 and len(names) > max_lines:
                c.drawString(padding, y, f"… +{len(names) - i}")
                break
            c.drawString(padding, y, name)
            y -= line_height

        c.restoreState()
