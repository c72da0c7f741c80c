"""Alembic environment for the appointment schema.

The URL always comes from DATABASE_URL (never from alembic.ini), the same
setting the app and the seed command read.
"""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from diagnostic_center.config import settings
from diagnostic_center.database import Base

# Register every table on Base.metadata for autogenerate
from diagnostic_center.models.user import User                  # noqa: F401
from diagnostic_center.models.appointment import Appointment    # noqa: F401
from diagnostic_center.models.activity_log import ActivityLog   # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
# SQLite cannot ALTER most constraints in place
render_as_batch = settings.DATABASE_URL.startswith("sqlite")


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=render_as_batch,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,  # catch Numeric precision changes on money columns
            render_as_batch=render_as_batch,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
