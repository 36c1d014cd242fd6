# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Programmatic schema migrations.

Revisions are the modules of ``migrations/versions``, applied in name
order. Each module exposes ``upgrade()`` (and ``downgrade()``) written
with ``alembic.op``. Applied revisions are recorded one row each in
``schema_migrations``, so a revision added later is picked up even if
newer ones already ran.

Example:
    from src.infrastructure.database.migrations.runner import run_migrations

    applied = await run_migrations(settings.database.url)
"""

import importlib
import logging
import pkgutil
from types import ModuleType

from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy import Column, DateTime, MetaData, String, Table, insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from src.infrastructure.database.migrations import versions
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_history_metadata = MetaData()

schema_migrations = Table(
    "schema_migrations",
    _history_metadata,
    Column("revision", String(128), primary_key=True),
    Column("applied_at", DateTime(timezone=True), nullable=False),
)


def discover_revisions() -> list[str]:
    """Names of all revision modules, oldest first."""
    return sorted(
        info.name
        for info in pkgutil.iter_modules(versions.__path__)
        if not info.name.startswith("_")
    )


def _load_revision(revision: str) -> ModuleType:
    module = importlib.import_module(f"{versions.__name__}.{revision}")
    if not callable(getattr(module, "upgrade", None)):
        raise ValueError(f"Migration {revision} has no upgrade() function")
    return module


def _upgrade(connection: Connection, target_revision: str | None) -> list[str]:
    _history_metadata.create_all(connection)
    done = set(connection.execute(select(schema_migrations.c.revision)).scalars())

    revisions = discover_revisions()
    if target_revision is not None:
        if target_revision not in revisions:
            raise ValueError(f"Unknown migration {target_revision}")
        revisions = revisions[: revisions.index(target_revision) + 1]

    applied: list[str] = []
    context = MigrationContext.configure(connection)
    for revision in revisions:
        if revision in done:
            continue
        module = _load_revision(revision)
        with Operations.context(context):
            module.upgrade()
        connection.execute(
            insert(schema_migrations).values(revision=revision, applied_at=utc_now())
        )
        logger.info("Applied migration %s", revision)
        applied.append(revision)
    return applied


async def run_migrations(db_url: str, target_revision: str | None = None) -> list[str]:
    """Apply every pending revision in one transaction.

    Args:
        db_url: Async database URL.
        target_revision: Stop after this revision instead of the newest.

    Returns:
        Revisions applied by this call, in order.

    Raises:
        ValueError: If target_revision or a revision module is invalid.
    """
    engine = create_async_engine(db_url)
    try:
        async with engine.begin() as conn:
            applied = await conn.run_sync(_upgrade, target_revision)
    finally:
        await engine.dispose()

    if not applied:
        logger.info("Schema is up to date")
    return applied
