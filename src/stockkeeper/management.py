"""Utility helpers for administrative tasks."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from . import backup
from .config import Settings, get_settings
from .main import configure_logging
from .store import RecordStore


async def init_database(settings: Settings | None = None) -> None:
    """Create database tables for the application."""

    store = RecordStore.from_settings(settings or get_settings())
    try:
        await store.init()
    finally:
        await store.dispose()


async def dump_backup(path: Path, settings: Settings | None = None) -> None:
    store = RecordStore.from_settings(settings or get_settings())
    try:
        await store.init()
        path.write_text(await backup.export_all(store), encoding="utf-8")
    finally:
        await store.dispose()


async def restore_backup(path: Path, settings: Settings | None = None) -> None:
    store = RecordStore.from_settings(settings or get_settings())
    try:
        await store.init()
        await backup.import_all(store, path.read_text(encoding="utf-8"))
    finally:
        await store.dispose()


def cli(argv: list[str] | None = None) -> None:
    """CLI wrapper executed from :mod:`python -m`."""

    parser = argparse.ArgumentParser(prog="stockkeeper-admin")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("init-db", help="Create the database tables.")
    export_parser = commands.add_parser("export", help="Write a JSON backup.")
    export_parser.add_argument("path", type=Path)
    import_parser = commands.add_parser("import", help="Merge a JSON backup into the store.")
    import_parser.add_argument("path", type=Path)
    args = parser.parse_args(argv)

    configure_logging(get_settings())
    if args.command == "init-db":
        asyncio.run(init_database())
    elif args.command == "export":
        asyncio.run(dump_backup(args.path))
    else:
        asyncio.run(restore_backup(args.path))


if __name__ == "__main__":
    cli()
