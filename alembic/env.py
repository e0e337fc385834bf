# alembic/env.py
"""
Migration runner for the RentDesk reconciliation service.

Migrations target ``settings.database_url`` so they always hit the database
the API itself talks to. ``alembic.ini`` puts the project root on the path.
"""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from config import settings
from models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure_kwargs(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place.
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Write the migration SQL to stdout instead of executing it."""
    url = settings.database_url
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = settings.database_url
    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
