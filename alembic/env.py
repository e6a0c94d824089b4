from logging.config import fileConfig
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from alembic import context
from sqlalchemy import create_engine

from workout_tracker.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

try:
    from workout_tracker import models  # noqa: F401
    from workout_tracker.database import Base
except ValueError:
    # database.py refuses to import without a URL; offline SQL generation can still run
    Base = None

target_metadata = Base.metadata if Base is not None else None


def _to_sync_url(url: str | None) -> str:
    """Normalize an async SQLAlchemy URL to a sync driver for Alembic."""
    if not url:
        raise ValueError("WORKOUT_TRACKER_DATABASE_URL environment variable is not set")

    if url.startswith("postgresql+asyncpg://"):
        url = url.replace("postgresql+asyncpg://", "postgresql+psycopg2://", 1)
    elif url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg2://", 1)
    elif url.startswith("sqlite+aiosqlite:"):
        return url.replace("sqlite+aiosqlite:", "sqlite:", 1)
    else:
        return url

    # psycopg2 expects sslmode instead of asyncpg's ssl flag
    parsed = urlparse(url)
    q = dict(parse_qsl(parsed.query, keep_blank_values=True))
    ssl_val = (q.pop("ssl", None) or "").strip().lower()
    if ssl_val in {"true", "1", "require"}:
        q.setdefault("sslmode", "require")
    q.pop("channel_binding", None)
    return urlunparse(parsed._replace(query=urlencode(q, doseq=True)))


def _database_url() -> str:
    return _to_sync_url(config.get_main_option("sqlalchemy.url") or get_settings().WORKOUT_TRACKER_DATABASE_URL)


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = create_engine(_database_url())

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
