
import logging
import time
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine
from catalog.core.settings import settings

logger = logging.getLogger(__name__)


def setup_query_monitoring(engine: AsyncEngine, threshold_ms: int | None = None) -> None:
    threshold = threshold_ms if threshold_ms is not None else settings.slow_query_threshold_ms
    sync_engine = engine.sync_engine

    if event.contains(sync_engine, "before_cursor_execute", _before_cursor_execute):
        return

    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.pop("query_start_time", None)
        if started is None:
            return
        duration_ms = (time.perf_counter() - started) * 1000
        if duration_ms > threshold:
            logger.warning(f"Slow query detected ({duration_ms:.0f}ms): {statement[:200]}")

    event.listen(sync_engine, "before_cursor_execute", _before_cursor_execute)
    event.listen(sync_engine, "after_cursor_execute", _after_cursor_execute)
    logger.info(f"Query monitoring enabled (threshold {threshold}ms)")


def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info["query_start_time"] = time.perf_counter()
