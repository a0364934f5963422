from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

from eventsettle.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# schema is written by hand in versions/, there is no ORM metadata
target_metadata = None


def database_url() -> str:
    """The configured DSN with any async driver suffix removed."""
    url = make_url(get_settings().database_url)
    driver = url.drivername.split("+", 1)[0]
    if driver != url.drivername:
        url = url.set(drivername=driver)
    return url.render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    context.configure(url=database_url(), literal_binds=True, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(database_url(), poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
