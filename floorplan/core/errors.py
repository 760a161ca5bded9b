from __future__ import annotations


class FloorPlanError(Exception):
    """Erreur de base du plan de salle."""


class UnknownTableError(FloorPlanError, KeyError):
    def __init__(self, table_id: int) -> None:
        super().__init__(f"Table inconnue : {table_id}")
        self.table_id = table_id


class UnknownGuestError(FloorPlanError, KeyError):
    def __init__(self, guest_id: int) -> None:
        super().__init__(f"Hôte inconnu : {guest_id}")
        self.guest_id = guest_id


class BackendError(FloorPlanError):
    """Échec de communication avec le backend (réseau, HTTP, base locale)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SaveError(FloorPlanError, RuntimeError):
    """L'enregistrement du plan a échoué ; l'état local est conservé."""
