from __future__ import annotations
from dataclasses import dataclass
import os
import sys
from pathlib import Path

from .constants import APP_NAME

@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    api_base_url: str | None = None
    api_token: str | None = None
    request_timeout: float = 15.0

    @property
    def local_db_path(self) -> Path:
        return self.data_dir / f"{APP_NAME.lower()}.db"

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"

    @property
    def uses_api(self) -> bool:
        return bool(self.api_base_url)


def get_run_root() -> Path:
    """Retourne le dossier contenant l'exécutable ou le projet en développement.

    Pour un binaire PyInstaller, le répertoire courant dépend du mode de
    lancement ; on déduit donc la racine à partir du chemin de l'exécutable
    gelé afin d'avoir une zone d'écriture stable pour les logs et la base
    locale.
    """

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent

    return Path(__file__).resolve().parent.parent.parent

def load_config(environ: dict[str, str] | None = None) -> AppConfig:
    env = os.environ if environ is None else environ
    data_dir = get_run_root() / "data"
    data_dir.mkdir(parents=True, exist_ok=True)

    api_url = (env.get("FLOORPLAN_API_URL") or "").strip().rstrip("/") or None
    token = (env.get("FLOORPLAN_API_TOKEN") or "").strip() or None
    try:
        timeout = float(env.get("FLOORPLAN_API_TIMEOUT", "15"))
    except ValueError:
        timeout = 15.0

    return AppConfig(data_dir=data_dir, api_base_url=api_url, api_token=token, request_timeout=timeout)
