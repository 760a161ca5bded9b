from __future__ import annotations
import logging
from typing import Callable, Optional

from PySide6.QtWidgets import (
    QComboBox, QGridLayout, QGroupBox, QHBoxLayout, QLabel, QMessageBox, QPushButton,
    QScrollArea, QTabWidget, QVBoxLayout, QWidget,
)

from floorplan.core.constants import UNASSIGNED_KEY
from floorplan.domain.models import Room, Table, parse_guest_key, table_key
from floorplan.domain.store import FloorPlanStore
from floorplan.services.assignment import AssignmentEngine
from floorplan.services.reconciliation import (
    ALL_NATIONALITIES, headcount_summary, nationality_facets, table_occupancy, unassigned_guests,
)
from floorplan.ui.dialogs.table_dialog import TableDialog
from floorplan.ui.widgets.guest_list import GuestListWidget

log = logging.getLogger(__name__)

GRID_COLUMNS = 4


class FloorPlanPage(QWidget):
    def __init__(
        self,
        store: FloorPlanStore,
        engine: AssignmentEngine,
        on_changed: Optional[Callable[[], None]] = None,
        notify: Optional[Callable[[str], None]] = None,
    ):
        super().__init__()
        self.store = store
        self.engine = engine
        self.on_changed = on_changed
        self.notify = notify or (lambda _msg: None)
        self.nationality_filter = ALL_NATIONALITIES

        v = QVBoxLayout(self)

        # En-tête : compteurs calculés vs manuels
        h = QHBoxLayout()
        self.lbl_total = QLabel("Total hôtes : 0", self)
        self.lbl_manual = QLabel("", self)
        self.lbl_manual.setStyleSheet("color: #b86d1f;")
        h.addWidget(self.lbl_total); h.addSpacing(16); h.addWidget(self.lbl_manual); h.addStretch(1)
        v.addLayout(h)

        body = QHBoxLayout()
        self.tabs = QTabWidget(self)
        self._room_grids: dict[Room, QGridLayout] = {}
        self._room_empty: dict[Room, QLabel] = {}
        for room in Room:
            self.tabs.addTab(self._build_room_tab(room), room.label)
        body.addWidget(self.tabs, 1)
        body.addWidget(self._build_pool_panel())
        v.addLayout(body)

    # --- construction
    def _build_room_tab(self, room: Room) -> QWidget:
        tab = QWidget(self)
        tv = QVBoxLayout(tab)
        top = QHBoxLayout()
        top.addWidget(QLabel(f"Salle : {room.label}", tab))
        top.addStretch(1)
        btn_add = QPushButton("Ajouter une table", tab)
        btn_add.clicked.connect(lambda _=False, r=room: self.add_table(r))
        top.addWidget(btn_add)
        tv.addLayout(top)

        holder = QWidget(tab)
        grid = QGridLayout(holder)
        self._room_grids[room] = grid
        scroll = QScrollArea(tab); scroll.setWidgetResizable(True); scroll.setWidget(holder)
        tv.addWidget(scroll, 1)

        empty = QLabel("Aucune table dans cette salle pour l'instant", tab)
        self._room_empty[room] = empty
        tv.addWidget(empty)
        return tab

    def _build_pool_panel(self) -> QWidget:
        box = self.pool_box = QGroupBox("Hôtes non placés", self)
        box.setMinimumWidth(300)
        pv = QVBoxLayout(box)

        self.cmb_nationality = QComboBox(box)
        self.cmb_nationality.currentIndexChanged.connect(self._on_filter_changed)
        pv.addWidget(self.cmb_nationality)

        pv.addWidget(QLabel("Glissez les hôtes vers les tables", box))
        self.pool_list = GuestListWidget(UNASSIGNED_KEY, self.handle_drop, box)
        pv.addWidget(self.pool_list, 1)

        self.lbl_pool_empty = QLabel("", box)
        pv.addWidget(self.lbl_pool_empty)

        btn_del = QPushButton("Supprimer l'hôte", box)
        btn_del.clicked.connect(self.delete_selected_guest)
        pv.addWidget(btn_del)
        return box

    def _build_table_card(self, table: Table) -> QGroupBox:
        card = QGroupBox(table.name, self)
        cv = QVBoxLayout(card)

        occ = table_occupancy(self.store, table.id)
        lbl = QLabel(f"{occ.ratio_label} hôtes", card)
        if occ.over_capacity:
            lbl.setStyleSheet("color: #c62828; font-weight: bold;")
        cv.addWidget(lbl)

        guests = GuestListWidget(table_key(table.id), self.handle_drop, card)
        guests.set_guests(self.store.guests.at_table(table.id))
        cv.addWidget(guests)

        h = QHBoxLayout()
        btn_edit = QPushButton("Modifier", card)
        btn_edit.clicked.connect(lambda _=False, tid=table.id: self.edit_table(tid))
        btn_remove = QPushButton("Retirer", card)
        btn_remove.setToolTip("Renvoyer l'hôte sélectionné dans le pool")
        btn_remove.clicked.connect(lambda _=False, w=guests: self._remove_selected(w))
        btn_del = QPushButton("Supprimer", card)
        btn_del.clicked.connect(lambda _=False, tid=table.id: self.delete_table(tid))
        for b in (btn_edit, btn_remove, btn_del):
            h.addWidget(b)
        cv.addLayout(h)
        return card

    # --- rendu
    def refresh(self) -> None:
        for room, grid in self._room_grids.items():
            while grid.count():
                w = grid.takeAt(0).widget()
                if w is not None:
                    w.deleteLater()
            tables = self.store.tables.in_room(room)
            for i, table in enumerate(tables):
                grid.addWidget(self._build_table_card(table), i // GRID_COLUMNS, i % GRID_COLUMNS)
            self._room_empty[room].setVisible(not tables)

        self._refresh_filter()
        pool = unassigned_guests(self.store, self.nationality_filter)
        self.pool_list.set_guests(pool)
        self.lbl_pool_empty.setText(
            "" if pool else (
                "Aucun hôte non placé" if self.nationality_filter == ALL_NATIONALITIES
                else "Aucun hôte de cette nationalité"
            )
        )
        self.pool_box.setTitle(f"Hôtes non placés ({len(pool)})")
        self._refresh_header()

    def _refresh_header(self) -> None:
        s = headcount_summary(self.store)
        self.lbl_total.setText(f"Total hôtes : {s.computed_total}")
        if s.has_discrepancy:
            self.lbl_manual.setText(
                f"Correction manuelle : {s.manual_total} ({s.manual_paid} payants + {s.manual_free} gratuits)"
            )
        else:
            self.lbl_manual.setText("")

    def _refresh_filter(self) -> None:
        facets = nationality_facets(self.store)
        if self.nationality_filter != ALL_NATIONALITIES and self.nationality_filter not in facets:
            self.nationality_filter = ALL_NATIONALITIES
        self.cmb_nationality.blockSignals(True)
        self.cmb_nationality.clear()
        self.cmb_nationality.addItem("Toutes", ALL_NATIONALITIES)
        for nat in facets:
            self.cmb_nationality.addItem(nat, nat)
        self.cmb_nationality.setCurrentIndex(max(0, self.cmb_nationality.findData(self.nationality_filter)))
        self.cmb_nationality.setVisible(bool(facets))
        self.cmb_nationality.blockSignals(False)

    def _on_filter_changed(self, _index: int) -> None:
        self.nationality_filter = self.cmb_nationality.currentData() or ALL_NATIONALITIES
        self.refresh()

    def _changed(self) -> None:
        self.refresh()
        if self.on_changed:
            self.on_changed()

    # --- actions
    def handle_drop(self, active_key: str, over_key: str) -> None:
        if not self.engine.handle_drop(active_key, over_key):
            return
        guest = self.store.guests.get(parse_guest_key(active_key))
        self.notify("Hôte placé à table" if guest and guest.is_assigned else "Hôte retiré de la table")
        self._changed()

    def add_table(self, room: Room) -> None:
        if not self.store.is_loaded:
            QMessageBox.warning(self, "Aucun événement", "Ouvrez un événement d'abord."); return
        dlg = TableDialog(self, room=room)
        if not dlg.exec(): return
        name, room_value, capacity = dlg.get_values()
        try:
            self.engine.create_table(name, room_value, capacity)
        except ValueError as exc:
            QMessageBox.warning(self, "Table invalide", str(exc)); return
        self.notify("Table ajoutée")
        self._changed()

    def edit_table(self, table_id: int) -> None:
        table = self.store.tables.get(table_id)
        if table is None: return
        dlg = TableDialog(self, table=table)
        if not dlg.exec(): return
        name, room_value, capacity = dlg.get_values()
        try:
            self.engine.update_table(table_id, name=name, room=room_value, capacity=capacity)
        except ValueError as exc:
            QMessageBox.warning(self, "Table invalide", str(exc)); return
        self.notify("Table modifiée")
        self._changed()

    def delete_table(self, table_id: int) -> None:
        displaced = self.engine.delete_table(table_id)
        self.notify(f"Table supprimée, {displaced} hôte(s) renvoyé(s) dans le pool")
        self._changed()

    def _remove_selected(self, widget: GuestListWidget) -> None:
        guest_id = widget.selected_guest_id()
        if guest_id is None: return
        self.engine.remove_from_table(guest_id)
        self._changed()

    def delete_selected_guest(self) -> None:
        guest_id = self.pool_list.selected_guest_id()
        if guest_id is None: return
        self.engine.delete_guest(guest_id)
        self._changed()
