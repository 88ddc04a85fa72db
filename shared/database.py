from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from shared.config import settings

_db_url = settings.DATABASE_URL
if _db_url:
    _db_url = _db_url.replace("postgresql://", "postgresql+asyncpg://")
    # Strip sslmode param (asyncpg uses ssl connect_arg instead)
    _db_url = _db_url.split("?sslmode=")[0] if "?sslmode=" in _db_url else _db_url

_engine_kwargs = {"echo": settings.LOG_LEVEL == "DEBUG"}
if _db_url and not _db_url.startswith("sqlite"):
    _engine_kwargs.update(pool_size=5, max_overflow=10)

engine = create_async_engine(_db_url, **_engine_kwargs) if _db_url else None

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
) if engine else None
