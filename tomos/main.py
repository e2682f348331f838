# tomos/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .catalog import CatalogStore, catalog_router
from .catalog.backend import BackendError, create_client
from .catalog.router import backend_error_handler
from .config import settings


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One client for the whole process, shared by every request.
    client = await create_client(settings)
    app.state.store = CatalogStore(client)
    logger.info("Catalog store ready (environment=%s)", settings.ENVIRONMENT.value)
    yield


app = FastAPI(
    title="Tomos",
    description=(
        "Read-only API over the release calendar: monthly releases, "
        "series catalogue, licensing announcements and lookups."
    ),
    version="1.0.0",
    lifespan=lifespan,
)
app.add_exception_handler(BackendError, backend_error_handler)
app.include_router(catalog_router)


# Health check
@app.get("/")
def health_check():
    return {"status": "ok"}
