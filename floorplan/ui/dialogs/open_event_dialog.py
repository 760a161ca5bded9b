from __future__ import annotations
from PySide6.QtWidgets import QComboBox, QDialog, QDialogButtonBox, QFormLayout, QSpinBox, QVBoxLayout

class OpenEventDialog(QDialog):
    """Choix de l'événement : liste du backend, ou saisie directe de l'id."""

    def __init__(self, events: list[dict], parent=None):
        super().__init__(parent)
        self.setWindowTitle("Ouvrir un événement")
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.events = QComboBox(self)
        self.events.addItem("(choisir)", None)
        for evt in events:
            label = f"#{evt.get('id')}  {evt.get('date', '')[:10]}  {evt.get('name') or ''}".strip()
            self.events.addItem(label, evt.get("id"))
        self.event_id = QSpinBox(self); self.event_id.setRange(1, 10_000_000)

        self.events.currentIndexChanged.connect(self._sync_id)

        form.addRow("Événement", self.events)
        form.addRow("ou id", self.event_id)
        layout.addLayout(form)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, self)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)
        layout.addWidget(btns)

        if events:
            self.events.setCurrentIndex(1)

    def _sync_id(self, _index: int) -> None:
        evt_id = self.events.currentData()
        if evt_id is not None:
            self.event_id.setValue(int(evt_id))

    def get_value(self) -> int:
        return self.event_id.value()
