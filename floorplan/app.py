from __future__ import annotations
import logging, sys
from PySide6.QtWidgets import QApplication

from floorplan.core.config import AppConfig, load_config
from floorplan.core.logging import setup_logging
from floorplan.core.constants import APP_NAME, APP_VERSION
from floorplan.domain.store import FloorPlanStore
from floorplan.infra.api_client import ApiBackend
from floorplan.infra.sqlite_backend import SqliteBackend
from floorplan.services.import_service import ImportService
from floorplan.services.export_service import ExportService
from floorplan.services.persistence import Persistence
from floorplan.ui.main_window import MainWindow

log = logging.getLogger(__name__)


def make_backend(cfg: AppConfig) -> ApiBackend | SqliteBackend:
    if cfg.uses_api:
        log.info("Backend REST : %s", cfg.api_base_url)
        return ApiBackend(cfg.api_base_url, token=cfg.api_token, timeout=cfg.request_timeout)
    log.info("Backend local : %s", cfg.local_db_path)
    return SqliteBackend(cfg.local_db_path)


def main() -> int:
    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)

    cfg = load_config()
    setup_logging(cfg.log_dir)
    log.info("%s %s démarré", APP_NAME, APP_VERSION)

    backend = make_backend(cfg)
    persistence = Persistence(backend)
    store = FloorPlanStore()

    import_svc = ImportService(store)
    export_svc = ExportService(store)
    win = MainWindow(persistence, store=store, import_service=import_svc, export_service=export_svc)
    win.show()
    try:
        return app.exec()
    finally:
        backend.close()

if __name__ == "__main__":
    raise SystemExit(main())
