
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker
from catalog.core.database import get_session_maker, check_database_health

router = APIRouter()

@router.get("/healthz")
async def healthz(session_maker: async_sessionmaker = Depends(get_session_maker)):
    healthy = await check_database_health(session_maker)
    return {"status": "ok", "database": "ok" if healthy else "unavailable"}
