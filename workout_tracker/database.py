from collections.abc import AsyncGenerator
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from .config import get_settings

logger = structlog.get_logger(__name__)


def ensure_async_url(url: str) -> str:
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:"):
        return url.replace("sqlite:", "sqlite+aiosqlite:", 1)
    return url


def _sanitize_asyncpg_query(url: str) -> str:
    parsed = urlparse(url)
    if not parsed.scheme.startswith("postgresql+asyncpg"):
        return url
    q = dict(parse_qsl(parsed.query, keep_blank_values=True))
    sslmode = (q.pop("sslmode", None) or "").strip().lower()
    if sslmode in {"require", "verify-full", "verify-ca"}:
        q.setdefault("ssl", "true")
    elif sslmode == "disable":
        q.setdefault("ssl", "false")
    q.pop("channel_binding", None)
    return urlunparse(parsed._replace(query=urlencode(q, doseq=True)))


DATABASE_URL = get_settings().WORKOUT_TRACKER_DATABASE_URL
if not DATABASE_URL:
    raise ValueError("WORKOUT_TRACKER_DATABASE_URL environment variable is not set")

DATABASE_URL = _sanitize_asyncpg_query(ensure_async_url(DATABASE_URL))
logger.info("database_url_configured", scheme=urlparse(DATABASE_URL).scheme)

engine_args = {}
if DATABASE_URL.startswith("sqlite+aiosqlite"):
    # aiosqlite connections must not be shared between event loops
    engine_args["poolclass"] = NullPool

engine = create_async_engine(DATABASE_URL, future=True, **engine_args)
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
