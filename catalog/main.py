
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager
from catalog.core.settings import settings
from catalog.core.logging import setup_logging
from catalog.api.endpoints import health as health_ep
from catalog.api.endpoints import search as search_ep
from catalog.api.endpoints import content as content_ep

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    from catalog.core.database import engine, Base
    from catalog.core.query_monitor import setup_query_monitoring
    import catalog.models.content  # noqa: F401

    setup_query_monitoring(engine)

    logger.info("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created.")

    yield

    await engine.dispose()

app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(health_ep.router)
app.include_router(search_ep.router)
app.include_router(content_ep.router)
