from __future__ import annotations

import re

from PySide6.QtWidgets import QDialog, QDialogButtonBox, QLabel, QPlainTextEdit, QVBoxLayout

_SEPARATORS = re.compile(r"[;,\t]")
_TRUTHY = {"oui", "yes", "true", "1", "o", "y", "ano", "a"}


def parse_guest_lines(text: str) -> list[dict]:
    """Une ligne = ``Nom;Type;Nationalité;Payé`` ; seules les lignes avec un nom comptent."""
    rows: list[dict] = []
    for line in text.splitlines():
        parts = [p.strip() for p in _SEPARATORS.split(line)]
        if not parts or not parts[0]:
            continue
        parts += [""] * (4 - len(parts))
        name, guest_type, nationality, paid = parts[:4]
        rows.append({
            "name": name,
            "type": guest_type or "adult",
            "nationality": nationality,
            "is_paid": paid.casefold() in _TRUTHY,
        })
    return rows


class BulkAddDialog(QDialog):
    """Saisie rapide d'hôtes (copier-coller depuis un tableur ou un mail)."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Ajout d'hôtes en masse")
        layout = QVBoxLayout(self)

        hint = QLabel("Une ligne par hôte, séparateur ; , ou tabulation :\nNom;Type(adult/child);Nationalité;Payé(Oui/Non)", self)
        hint.setWordWrap(True)
        layout.addWidget(hint)

        self.text = QPlainTextEdit(self)
        self.text.setPlaceholderText("Jan Novák;adult;CZ;Ano\nEva Nováková;child;CZ;Ne")
        self.text.textChanged.connect(self._update_count)
        layout.addWidget(self.text)

        self.lbl_count = QLabel("0 hôte détecté", self)
        layout.addWidget(self.lbl_count)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, self)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)
        layout.addWidget(btns)

    def _update_count(self) -> None:
        n = len(self.get_rows())
        self.lbl_count.setText(f"{n} hôte{'s' if n > 1 else ''} détecté{'s' if n > 1 else ''}")

    def get_rows(self) -> list[dict]:
        return parse_guest_lines(self.text.toPlainText())
