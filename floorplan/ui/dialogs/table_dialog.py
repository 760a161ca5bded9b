from __future__ import annotations
from PySide6.QtWidgets import QComboBox, QDialog, QDialogButtonBox, QFormLayout, QLineEdit, QSpinBox, QVBoxLayout

from floorplan.core.constants import DEFAULT_TABLE_CAPACITY
from floorplan.domain.models import Room, Table

class TableDialog(QDialog):
    def __init__(self, parent=None, room: Room = Room.ROUBENKA, table: Table | None = None):
        super().__init__(parent)
        self.setWindowTitle("Modifier la table" if table else "Nouvelle table")
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.name = QLineEdit(self); self.name.setPlaceholderText("Stůl 1")
        self.room = QComboBox(self)
        for r in Room:
            self.room.addItem(r.label, r.value)
        self.capacity = QSpinBox(self); self.capacity.setRange(1, 500); self.capacity.setValue(DEFAULT_TABLE_CAPACITY)

        form.addRow("Nom de la table *", self.name)
        form.addRow("Salle *", self.room)
        form.addRow("Capacité *", self.capacity)
        layout.addLayout(form)

        if table:
            self.name.setText(table.name)
            room = table.room
            self.capacity.setValue(table.capacity)
        self.room.setCurrentIndex(max(0, self.room.findData(Room(room).value)))

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, self)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)
        layout.addWidget(btns)

    def get_values(self) -> tuple[str, str, int]:
        return self.name.text().strip(), self.room.currentData(), self.capacity.value()
