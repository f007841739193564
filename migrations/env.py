"""Alembic environment configuration for the sales backend."""

from __future__ import annotations

import logging
import os
from logging.config import fileConfig

from alembic import context
from flask import current_app
from sqlalchemy import engine_from_config, pool

from app.config import _normalize_db_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")


def _escape_percent(url: str) -> str:
    if "%" not in url:
        return url
    return url.replace("%", "%%").replace("%%%%", "%%")


def _get_url() -> str:
    """ALEMBIC_DATABASE_URL tiene prioridad sobre la base de la app."""
    env_url = os.getenv("ALEMBIC_DATABASE_URL")
    if env_url:
        return _normalize_db_url(env_url)
    return current_app.config["SQLALCHEMY_DATABASE_URI"]


def _get_metadata():
    migrate_ext = current_app.extensions["migrate"]
    return migrate_ext.db.metadata


def _configure_args(**kwargs):
    args = dict(
        target_metadata=_get_metadata(),
        compare_type=True,
        compare_server_default=True,
        # SQLite no soporta ALTER de constraints
        render_as_batch=_get_url().startswith("sqlite"),
    )
    args.update(current_app.extensions["migrate"].configure_args)
    args.update(kwargs)
    return args


def run_migrations_offline() -> None:
    url = _get_url()
    context.configure(**_configure_args(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    ))
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = dict(config.get_section(config.config_ini_section) or {})
    section["sqlalchemy.url"] = _escape_percent(_get_url())

    connectable = engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(**_configure_args(connection=connection))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
