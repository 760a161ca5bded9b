from __future__ import annotations
import logging
from pathlib import Path
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QFileDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QStatusBar,
    QToolBar,
)

from floorplan.core.constants import APP_NAME
from floorplan.core.errors import BackendError, SaveError
from floorplan.domain.store import FloorPlanStore
from floorplan.services.assignment import AssignmentEngine
from floorplan.services.export_service import ExportService
from floorplan.services.import_service import ImportService
from floorplan.services.persistence import Persistence
from floorplan.services.reconciliation import headcount_summary
from floorplan.ui.dialogs.bulk_add_dialog import BulkAddDialog
from floorplan.ui.dialogs.open_event_dialog import OpenEventDialog
from floorplan.ui.pages.floor_plan_page import FloorPlanPage

log = logging.getLogger(__name__)

TOAST_MS = 4000

class MainWindow(QMainWindow):
    def __init__(
        self,
        persistence: Persistence,
        store: FloorPlanStore | None = None,
        import_service: ImportService | None = None,
        export_service: ExportService | None = None,
    ) -> None:
        super().__init__()
        self.persistence = persistence
        self.store = store or FloorPlanStore()
        self.engine = AssignmentEngine(self.store)
        self.import_service = import_service or ImportService(self.store)
        self.export_service = export_service or ExportService(self.store)
        self.dirty = False

        self.setWindowTitle(APP_NAME)
        self.resize(1280, 820)

        self.page_plan = FloorPlanPage(self.store, self.engine, on_changed=self._on_plan_changed, notify=self._toast)
        self.setCentralWidget(self.page_plan)

        # StatusBar
        self.status = QStatusBar(self)
        self.setStatusBar(self.status)
        self.lbl_event = QLabel("Aucun événement", self)
        self.lbl_counts = QLabel("", self)
        self.status.addPermanentWidget(self.lbl_event)
        self.status.addPermanentWidget(self.lbl_counts)

        # Menus & Toolbar
        self._create_actions()
        self._create_menus()
        self._create_toolbar()
        self._update_actions()

    # --- Actions/menus/toolbar
    def _create_actions(self) -> None:
        self.act_open = QAction("Ouvrir un événement…", self); self.act_open.setShortcut(QKeySequence.Open)
        self.act_reload = QAction("Recharger", self); self.act_reload.setShortcut(QKeySequence.Refresh)
        self.act_save = QAction("Enregistrer le plan", self); self.act_save.setShortcut(QKeySequence.Save)
        self.act_close = QAction("Fermer l'événement", self)
        self.act_quit = QAction("Quitter", self); self.act_quit.setShortcut(QKeySequence.Quit)

        self.act_import_reservations = QAction("Importer les hôtes des réservations", self)
        self.act_import_excel = QAction("Importer depuis Excel…", self)
        self.act_import_ui = QAction("Ajouter en masse…", self)
        self.act_export_excel = QAction("Exporter plan (Excel)…", self)
        self.act_export_cards = QAction("Exporter cartes de table (PDF)…", self)

        self.act_open.triggered.connect(self.on_open_event)
        self.act_reload.triggered.connect(self.on_reload)
        self.act_save.triggered.connect(self.on_save)
        self.act_close.triggered.connect(self.on_close_event)
        self.act_quit.triggered.connect(self.close)

        self.act_import_reservations.triggered.connect(self.on_import_reservations)
        self.act_import_excel.triggered.connect(self.on_import_excel)
        self.act_import_ui.triggered.connect(self.on_import_ui)
        self.act_export_excel.triggered.connect(self.on_export_excel)
        self.act_export_cards.triggered.connect(self.on_export_cards)

    def _create_menus(self) -> None:
        bar = self.menuBar()
        m_file = bar.addMenu("&Fichier")
        m_file.addAction(self.act_open)
        m_file.addAction(self.act_reload)
        m_file.addAction(self.act_save)
        m_file.addAction(self.act_close)
        m_file.addSeparator()
        m_file.addAction(self.act_quit)

        m_import = bar.addMenu("&Importer")
        m_import.addAction(self.act_import_reservations)
        m_import.addAction(self.act_import_excel)
        m_import.addAction(self.act_import_ui)

        m_export = bar.addMenu("&Exporter")
        m_export.addAction(self.act_export_excel)
        m_export.addAction(self.act_export_cards)

    def _create_toolbar(self) -> None:
        tb = QToolBar("Actions", self)
        tb.setMovable(False)
        tb.setToolButtonStyle(Qt.ToolButtonTextBesideIcon)
        self.addToolBar(Qt.TopToolBarArea, tb)
        tb.addAction(self.act_open)
        tb.addAction(self.act_save)
        tb.addSeparator()
        tb.addAction(self.act_import_reservations)
        tb.addAction(self.act_import_excel)
        tb.addAction(self.act_import_ui)
        tb.addSeparator()
        tb.addAction(self.act_export_excel)
        tb.addAction(self.act_export_cards)

    def _update_actions(self) -> None:
        loaded = self.store.is_loaded
        for act in (
            self.act_reload, self.act_save, self.act_close, self.act_import_reservations,
            self.act_import_excel, self.act_import_ui, self.act_export_excel, self.act_export_cards,
        ):
            act.setEnabled(loaded)

    # --- Handlers
    def on_open_event(self):
        if not self._confirm_discard(): return
        try:
            events = self.persistence.list_events()
        except BackendError:
            log.exception("Liste des événements indisponible")
            events = []
        dlg = OpenEventDialog(events, self)
        if not dlg.exec(): return
        self._load(dlg.get_value())

    def on_reload(self):
        if not self._confirm_discard(): return
        try:
            self.persistence.reload(self.store)
        except (BackendError, RuntimeError, ValueError, KeyError) as exc:
            log.exception("Rechargement échoué")
            QMessageBox.critical(self, "Erreur de chargement", str(exc))
            return
        self._after_load()

    def on_close_event(self):
        if not self._confirm_discard(): return
        self.persistence.close_event(self.store)
        self.dirty = False
        self.lbl_event.setText("Aucun événement")
        self.page_plan.refresh()
        self._update_counts()
        self._update_actions()

    def on_save(self):
        try:
            self.persistence.save_floor_plan(self.store)
        except SaveError as exc:
            # état local conservé : l'utilisateur peut réessayer
            log.exception("Enregistrement du plan échoué")
            QMessageBox.critical(self, "Erreur", f"Impossible d'enregistrer le plan de salle.\n{exc}")
            return
        self.dirty = False
        self._update_title()
        self._toast("Plan de salle enregistré")

    def on_import_reservations(self):
        try:
            reservations = self.persistence.list_reservations()
            result = self.import_service.import_reservations(reservations)
        except (BackendError, ValueError) as exc:
            log.exception("Import des réservations échoué")
            QMessageBox.critical(self, "Erreur d'import", str(exc))
            return
        self._on_plan_changed()
        self.page_plan.refresh()
        QMessageBox.information(self, "Import terminé", result.message())

    def on_import_excel(self):
        path, _ = QFileDialog.getOpenFileName(self, "Importer depuis Excel", "", "Excel (*.xlsx)")
        if not path:
            return
        try:
            added = self.import_service.import_from_excel(path)
        except Exception as exc:
            log.exception("Import Excel échoué")
            QMessageBox.critical(self, "Erreur d'import", str(exc))
            return

        self._on_plan_changed()
        self.page_plan.refresh()
        QMessageBox.information(self, "Import terminé", f"{added} hôte(s) importé(s).")

    def on_import_ui(self):
        dlg = BulkAddDialog(self)
        if not dlg.exec():
            return
        rows = dlg.get_rows()
        if not rows:
            QMessageBox.information(self, "Aucune ligne", "Aucun hôte détecté dans le texte fourni.")
            return
        added = self.import_service.import_from_ui(rows)
        self._on_plan_changed()
        self.page_plan.refresh()
        QMessageBox.information(self, "Import terminé", f"{added} hôte(s) ajouté(s).")

    def on_export_excel(self):
        suggested = f"{self._export_basename()}.xlsx"
        path, _ = QFileDialog.getSaveFileName(self, "Exporter le plan Excel", suggested, "Excel (*.xlsx)")
        if not path:
            return
        try:
            output = self.export_service.export_floor_plan_excel(Path(path))
        except Exception as exc:
            log.exception("Export Excel échoué")
            QMessageBox.critical(self, "Erreur d'export", str(exc))
            return
        QMessageBox.information(self, "Export terminé", f"Fichier généré : {output}")

    def on_export_cards(self):
        suggested = f"{self._export_basename()}_tables.pdf"
        path, _ = QFileDialog.getSaveFileName(self, "Exporter les cartes de table", suggested, "PDF (*.pdf)")
        if not path:
            return
        try:
            output = self.export_service.export_table_cards_pdf(Path(path))
        except Exception as exc:
            log.exception("Export des cartes échoué")
            QMessageBox.critical(self, "Erreur d'export", str(exc))
            return
        QMessageBox.information(self, "Export terminé", f"Cartes exportées vers {output}")

    def closeEvent(self, event):
        if self._confirm_discard():
            event.accept()
        else:
            event.ignore()

    # --- helpers
    def _load(self, event_id: int) -> None:
        try:
            self.persistence.open_event(event_id, self.store)
        except (BackendError, ValueError, KeyError) as exc:
            # document invalide : le plan courant reste affiché
            log.exception("Chargement de l'événement %s échoué", event_id)
            QMessageBox.critical(self, "Erreur de chargement", str(exc))
            return
        self._after_load()

    def _after_load(self):
        event = self.store.require_event()
        self.dirty = False
        self.lbl_event.setText(f"Événement : {event.name or '#' + str(event.id)} ({event.date.isoformat()})")
        self.page_plan.refresh()
        self._update_counts()
        self._update_actions()
        self._update_title()

    def _on_plan_changed(self):
        self.dirty = True
        self._update_counts()
        self._update_title()

    def _update_counts(self):
        if not self.store.is_loaded:
            self.lbl_counts.setText("")
            return
        s = headcount_summary(self.store)
        text = f"Hôtes : {s.computed_paid} payants + {s.computed_free} gratuits"
        if s.has_discrepancy:
            text += f" | manuel : {s.manual_paid} + {s.manual_free}"
        self.lbl_counts.setText(text)

    def _update_title(self):
        self.setWindowTitle(f"{APP_NAME}{' *' if self.dirty else ''}")

    def _toast(self, message: str) -> None:
        self.status.showMessage(message, TOAST_MS)

    def _export_basename(self) -> str:
        event = self.store.event
        if not event:
            return "plan"
        return (event.name or f"plan_{event.date.isoformat()}").strip() or "plan"

    def _confirm_discard(self) -> bool:
        if not self.dirty:
            return True
        answer = QMessageBox.question(
            self, "Modifications non enregistrées",
            "Le plan contient des modifications non enregistrées. Les abandonner ?",
        )
        return answer == QMessageBox.Yes
