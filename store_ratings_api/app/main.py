"""
Main entrypoint for the Store Ratings API.

This module assembles the FastAPI application: logging, CORS, error
handlers, the versioned router and the database lifecycle.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``::

    uvicorn store_ratings_api.app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.router import router as v1_router
from .core.config import Settings, settings
from .core.db import Database
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging
from .services.user_service import UserService


logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to build the app with.  Defaults to the module level
        ``settings`` read from the environment; tests pass their own
        to point the app at a temporary database.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    cfg = app_settings or settings
    setup_logging(cfg.log_level, cfg.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Open the database handle (applying migrations) before serving
        # requests and close it once the server stops.
        db = Database(cfg.database_url)
        db.open()
        app.state.db = db
        if cfg.admin_name and cfg.admin_email and cfg.admin_password:
            await UserService.ensure_admin(db, cfg.admin_name, cfg.admin_email, cfg.admin_password)
        try:
            yield
        finally:
            db.close()

    app = FastAPI(title=cfg.project_name, version=cfg.api_version, debug=cfg.debug, lifespan=lifespan)
    app.state.settings = cfg

    origins = cfg.cors_origin_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(v1_router)

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
