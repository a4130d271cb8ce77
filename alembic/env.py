from __future__ import annotations

from logging.config import fileConfig

from alembic import context

from app.db import DATABASE_URL, build_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def get_metadata():
    from app.db import Base
    from app.models import partner, redemption, reward, ride, user  # noqa: F401 (register tables)

    return Base.metadata


def run_migrations_offline():
    """Run migrations in 'offline' mode."""
    context.configure(url=DATABASE_URL, target_metadata=get_metadata(), literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode."""
    connectable = build_engine(DATABASE_URL)

    try:
        with connectable.connect() as connection:
            context.configure(connection=connection, target_metadata=get_metadata())

            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
