from __future__ import annotations

import logging

from floorplan.core.errors import UnknownGuestError, UnknownTableError
from floorplan.domain.models import (
    DropTarget,
    Guest,
    GuestType,
    OnGuest,
    OnTable,
    OnUnassigned,
    Room,
    Table,
    parse_drop_target,
    parse_guest_key,
)
from floorplan.domain.store import FloorPlanStore

log = logging.getLogger(__name__)

# Sentinelle : cible de dépôt non résolue (différente de "non placé" = None)
_UNRESOLVED = object()


class AssignmentEngine:
    """
    Seule surface de mutation des tables et des hôtes :
    - tables : création / modification / suppression (hôtes renvoyés au pool)
    - hôtes : déplacement (glisser-déposer), retrait d'une table, suppression
    Aucune opération ne laisse un hôte rattaché à une table inexistante.
    """

    def __init__(self, store: FloorPlanStore) -> None:
        self.store = store

    # --- tables
    def create_table(self, name: str, room: Room | str, capacity: int) -> Table:
        name, room, capacity = self._validate_table(name, room, capacity)
        table = Table(id=self.store.tables.next_id(), name=name, room=room, capacity=capacity)
        self.store.tables.add(table)
        log.info("Table %s créée (%s, %s places)", table.id, room.value, capacity)
        return table

    def update_table(self, table_id: int, *, name: str, room: Room | str, capacity: int) -> Table:
        table = self._require_table(table_id)
        table.name, table.room, table.capacity = self._validate_table(name, room, capacity)
        # les hôtes gardent leur table, même si la salle change
        log.info("Table %s modifiée", table_id)
        return table

    def delete_table(self, table_id: int) -> int:
        """Supprime la table ; ses hôtes repassent non placés. Retourne leur nombre."""
        self._require_table(table_id)
        displaced = self.store.guests.at_table(table_id)
        for guest in displaced:
            guest.table_id = None
        self.store.tables.remove(table_id)
        log.info("Table %s supprimée, %d hôte(s) renvoyé(s) au pool", table_id, len(displaced))
        return len(displaced)

    # --- hôtes
    def add_guest(
        self,
        name: str,
        type: GuestType | str = GuestType.ADULT,
        nationality: str | None = None,
        is_paid: bool = False,
    ) -> Guest:
        name = (name or "").strip()
        if not name:
            raise ValueError("Le nom de l'hôte est obligatoire")
        guest = Guest(
            id=self.store.guests.next_id(),
            name=name,
            type=GuestType.from_person_type(getattr(type, "value", type)),
            nationality=(nationality or "").strip() or None,
            is_paid=bool(is_paid),
        )
        self.store.guests.add(guest)
        log.debug("Hôte %s ajouté", guest.id)
        return guest

    def move_guest(self, guest_id: int, target: DropTarget | None) -> bool:
        """Place l'hôte selon la cible ; no-op (False) si rien n'est résolu."""
        guest = self.store.guests.get(guest_id)
        if guest is None:
            log.debug("Déplacement ignoré : hôte %s inconnu", guest_id)
            return False

        destination = self.resolve_destination(target)
        if destination is _UNRESOLVED:
            log.debug("Déplacement ignoré : cible %r non résolue", target)
            return False

        guest.table_id = destination
        log.debug("Hôte %s -> table %s", guest_id, destination)
        return True

    def handle_drop(self, active_key: str | None, over_key: str | None) -> bool:
        """Point d'entrée du glisser-déposer (``guest-<id>`` sur ``table-<id>``,
        ``guest-<id>`` ou ``unassigned``)."""
        guest_id = parse_guest_key(active_key)
        if guest_id is None:
            return False
        return self.move_guest(guest_id, parse_drop_target(over_key))

    def resolve_destination(self, target: DropTarget | None):
        """Table de destination (id), None pour le pool, ou ``_UNRESOLVED``."""
        if isinstance(target, OnTable):
            return target.table_id if target.table_id in self.store.tables else _UNRESOLVED
        if isinstance(target, OnGuest):
            other = self.store.guests.get(target.guest_id)
            # déposé sur un hôte : on rejoint sa table (ou le pool s'il n'est pas placé)
            return other.table_id if other is not None else _UNRESOLVED
        if isinstance(target, OnUnassigned):
            return None
        return _UNRESOLVED

    def remove_from_table(self, guest_id: int) -> None:
        guest = self._require_guest(guest_id)
        guest.table_id = None
        log.debug("Hôte %s retiré de sa table", guest_id)

    def delete_guest(self, guest_id: int) -> None:
        self._require_guest(guest_id)
        self.store.guests.remove(guest_id)
        log.debug("Hôte %s supprimé", guest_id)

    # --- helpers
    def _require_table(self, table_id: int) -> Table:
        table = self.store.tables.get(table_id)
        if table is None:
            raise UnknownTableError(table_id)
        return table

    def _require_guest(self, guest_id: int) -> Guest:
        guest = self.store.guests.get(guest_id)
        if guest is None:
            raise UnknownGuestError(guest_id)
        return guest

    def _validate_table(self, name: str, room: Room | str, capacity: int) -> tuple[str, Room, int]:
        name = (name or "").strip()
        if not name:
            raise ValueError("Le nom de la table est obligatoire")
        try:
            room = Room(room)
        except ValueError:
            raise ValueError(f"Salle inconnue : {room}") from None
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError("La capacité doit être d'au moins 1")
        return name, room, capacity
