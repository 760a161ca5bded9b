from __future__ import annotations

import logging
from typing import Any

import httpx

from floorplan.core.errors import BackendError

log = logging.getLogger(__name__)


class ApiBackend:
    """Client REST du back-office (événements et réservations).

    Seul ``PUT /events/{id}`` écrit : le plan complet est envoyé à chaque fois.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def list_events(self) -> list[dict]:
        return self._request("GET", "/events") or []

    def fetch_event(self, event_id: int) -> dict:
        return self._request("GET", f"/events/{event_id}")

    def replace_event(self, event_id: int, doc: dict) -> dict:
        return self._request("PUT", f"/events/{event_id}", json=doc)

    def list_reservations(self) -> list[dict]:
        return self._request("GET", "/reservations") or []

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            log.warning("%s %s -> HTTP %s", method, path, status)
            raise BackendError(f"{method} {path} : HTTP {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            log.warning("%s %s a échoué : %s", method, path, exc)
            raise BackendError(f"{method} {path} : {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(f"{method} {path} : réponse JSON invalide") from exc
