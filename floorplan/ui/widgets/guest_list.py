from __future__ import annotations
from typing import Callable, Optional

from PySide6.QtCore import QMimeData, Qt, QTimer
from PySide6.QtGui import QDrag
from PySide6.QtWidgets import QAbstractItemView, QListWidget, QListWidgetItem

from floorplan.core.constants import GUEST_MIME_TYPE, GUEST_TYPE_LABELS
from floorplan.domain.models import Guest, guest_key

GUEST_KEY_ROLE = Qt.UserRole + 1


class GuestListWidget(QListWidget):
    """
    Liste d'hôtes déplaçables. ``drop_key`` identifie la zone elle-même
    (``table-<id>`` ou ``unassigned``) ; un dépôt sur une ligne cible l'hôte
    de cette ligne (``guest-<id>``).

    Le widget ne déplace rien lui-même : il transmet (hôte, cible) à
    ``on_drop`` et la page se redessine à partir du plan.
    """

    def __init__(self, drop_key: str, on_drop: Callable[[str, str], None], parent=None) -> None:
        super().__init__(parent)
        self.drop_key = drop_key
        self.on_drop = on_drop
        self.setDragEnabled(True)
        self.setAcceptDrops(True)
        self.setDropIndicatorShown(True)
        self.setDragDropMode(QAbstractItemView.DragDrop)
        self.setSelectionMode(QAbstractItemView.SingleSelection)
        self.setMinimumHeight(40)

    def set_guests(self, guests: list[Guest]) -> None:
        self.clear()
        for g in guests:
            text = f"{g.name}  ·  {GUEST_TYPE_LABELS.get(g.type.value, g.type.value)}"
            if g.nationality:
                text += f" • {g.nationality}"
            item = QListWidgetItem(text, self)
            item.setData(GUEST_KEY_ROLE, guest_key(g.id))
            item.setData(Qt.UserRole, g.id)

    def selected_guest_id(self) -> Optional[int]:
        item = self.currentItem()
        return item.data(Qt.UserRole) if item else None

    # --- drag & drop
    def startDrag(self, supported_actions) -> None:
        item = self.currentItem()
        if item is None:
            return
        mime = QMimeData()
        mime.setData(GUEST_MIME_TYPE, item.data(GUEST_KEY_ROLE).encode("utf-8"))
        drag = QDrag(self)
        drag.setMimeData(mime)
        drag.exec(Qt.MoveAction)

    def dragEnterEvent(self, event) -> None:
        if event.mimeData().hasFormat(GUEST_MIME_TYPE):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragMoveEvent(self, event) -> None:
        if event.mimeData().hasFormat(GUEST_MIME_TYPE):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event) -> None:
        if not event.mimeData().hasFormat(GUEST_MIME_TYPE):
            event.ignore()
            return
        active_key = bytes(event.mimeData().data(GUEST_MIME_TYPE)).decode("utf-8")
        item = self.itemAt(event.position().toPoint())
        over_key = item.data(GUEST_KEY_ROLE) if item is not None else self.drop_key
        event.acceptProposedAction()
        # la page reconstruit les listes : on sort d'abord de la boucle de drag
        callback = self.on_drop
        QTimer.singleShot(0, lambda: callback(active_key, over_key))
