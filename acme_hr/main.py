# acme_hr/main.py
import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI

from acme_hr.api.catalogs import areas_router, cargos_router
from acme_hr.api.empleados import router as empleados_router
from acme_hr.api.errors import register_error_handlers
from acme_hr.api.nominas import router as nominas_router
from acme_hr.config import settings
from acme_hr.db import RecordStore
from acme_hr.services.etl_service import run_etl

logger = logging.getLogger("acme_hr")


def create_app(store: RecordStore) -> FastAPI:
    app = FastAPI(title="Acme Corporate HR")
    app.state.store = store
    register_error_handlers(app)

    for router in (areas_router, cargos_router, empleados_router, nominas_router):
        app.include_router(router, prefix="/api")

    @app.get("/api/test")
    def api_test():
        return {"message": "API de prueba funcionando correctamente!"}

    return app


def bootstrap(store: RecordStore, data_folder: Optional[str] = None, run_loader: bool = True):
    """Connect to the store and, if asked, load the CSV sources."""
    store.connect()
    logger.info(f"Connected to the record store ({store.engine.url.render_as_string(hide_password=True)})")
    if run_loader:
        session = store.session()
        try:
            return run_etl(session, data_folder or settings.DATA_FOLDER)
        finally:
            session.close()
    return None


def main():
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
    store = RecordStore(settings.DATABASE_URL)
    try:
        bootstrap(store, settings.DATA_FOLDER, settings.RUN_ETL_ON_STARTUP)
    except Exception as e:
        logger.exception(f"Startup failed: {e}")
        sys.exit(1)

    app = create_app(store)
    logger.info(f"Serving on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
