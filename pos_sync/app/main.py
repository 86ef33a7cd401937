from fastapi import FastAPI
from pos_sync.core.config import settings
from pos_sync.core.database import init_db
from pos_sync.core.exceptions import register_exception_handlers
from pos_sync.core.logging_config import configure_logging
from pos_sync.modules.pos.routes.pos_routes import router as pos_router
from pos_sync.modules.pos.services.sync_runtime import SyncRuntime


def create_app(runtime: SyncRuntime = None) -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="POS Sync",
        description="Catalog reconciliation and order push to CloudPOS",
        version="1.0.0",
        debug=settings.debug,
    )

    register_exception_handlers(app)
    app.state.sync_runtime = runtime or SyncRuntime()
    app.include_router(pos_router)

    @app.on_event("startup")
    async def startup_event():
        """Create tables on application startup"""
        init_db()

    @app.get("/")
    def read_root():
        return {"message": "POS sync is running"}

    return app


app = create_app()
