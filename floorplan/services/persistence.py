from __future__ import annotations

import copy
import logging
from typing import Optional, Protocol

from floorplan.core.errors import BackendError, SaveError
from floorplan.domain.models import Reservation
from floorplan.domain.store import FloorPlanStore

log = logging.getLogger(__name__)


class EventBackend(Protocol):
    def fetch_event(self, event_id: int) -> dict: ...
    def replace_event(self, event_id: int, doc: dict) -> Optional[dict]: ...
    def list_reservations(self) -> list[dict]: ...
    def list_events(self) -> list[dict]: ...


def serialize_floor_plan(store: FloorPlanStore) -> dict:
    """Objet événement complet : tables avec leurs hôtes + hôtes non placés."""
    event = store.require_event()
    doc = event.to_doc()
    doc["tables"] = [
        {**table.to_doc(event_id=event.id), "guests": [g.to_doc() for g in store.guests.at_table(table.id)]}
        for table in store.tables
    ]
    doc["guests"] = [g.to_doc() for g in store.guests.unassigned()]
    return doc


class Persistence:
    """
    Une façade simple pour piloter l'événement courant.
    - open_event(event_id, store) → charge (cache ou backend) et réhydrate le plan
    - reload(store) → recharge depuis le backend en ignorant le cache
    - save_floor_plan(store) → un seul remplacement complet côté backend
    - list_reservations() → réservations pour l'import
    """

    def __init__(self, backend: EventBackend) -> None:
        self.backend = backend
        self.event_id: Optional[int] = None
        self._cache: dict[int, dict] = {}

    # --- utils
    def _require(self) -> int:
        if self.event_id is None:
            raise RuntimeError("Aucun événement ouvert")
        return self.event_id

    def invalidate(self, event_id: int | None = None) -> None:
        if event_id is None:
            self._cache.clear()
        else:
            self._cache.pop(event_id, None)

    def get_event(self, event_id: int, *, refresh: bool = False) -> dict:
        if refresh or event_id not in self._cache:
            self._cache[event_id] = self.backend.fetch_event(event_id)
        # copie : le store ne doit jamais partager d'objets avec le cache
        return copy.deepcopy(self._cache[event_id])

    # --- lifecycle
    def open_event(self, event_id: int, store: FloorPlanStore, *, refresh: bool = False) -> None:
        doc = self.get_event(event_id, refresh=refresh)
        store.hydrate(doc)
        self.event_id = store.require_event().id

    def reload(self, store: FloorPlanStore) -> None:
        self.open_event(self._require(), store, refresh=True)

    def close_event(self, store: FloorPlanStore | None = None) -> None:
        self.event_id = None
        if store is not None:
            store.clear()

    def list_events(self) -> list[dict]:
        return self.backend.list_events()

    # --- plan
    def save_floor_plan(self, store: FloorPlanStore) -> dict:
        """Envoie le plan complet ; en cas d'échec l'état local reste intact."""
        event_id = store.require_event().id
        doc = serialize_floor_plan(store)
        try:
            saved = self.backend.replace_event(event_id, doc)
        except BackendError as exc:
            log.error("Enregistrement du plan %s échoué : %s", event_id, exc)
            raise SaveError(f"Impossible d'enregistrer le plan : {exc}") from exc

        # toutes les lectures suivantes repartent de la copie serveur
        self.invalidate()
        log.info(
            "Plan %s enregistré : %d table(s), %d hôte(s) non placé(s)",
            event_id, len(doc["tables"]), len(doc["guests"]),
        )
        return saved if saved is not None else doc

    # --- réservations
    def list_reservations(self) -> list[Reservation]:
        return [Reservation.from_doc(r) for r in self.backend.list_reservations()]
