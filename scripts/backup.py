"""Export or restore an AlgoDeck JSON backup.

Usage:
    python -m scripts.backup export backups/algodeck.json
    python -m scripts.backup import backups/algodeck.json
    python -m scripts.backup import old-export.json --database-url sqlite+aiosqlite:///data/other.db
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from algodeck.config import settings
from algodeck.context import create_context
from algodeck.database import make_engine
from algodeck.exceptions import BackupValidationError
from algodeck.store.backup import export_backup, import_backup


async def run_export(database_url: str, path: Path) -> None:
    engine = make_engine(database_url)
    try:
        ctx = await create_context(engine)
        async with ctx.session_factory() as db:
            data = await export_backup(db)
    finally:
        await engine.dispose()

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(data.model_dump_json(indent=2), encoding="utf-8")
    logging.info(
        "Exported %d items, %d solutions, %d revision logs to %s",
        len(data.items),
        len(data.solutions),
        len(data.revision_logs),
        path,
    )


async def run_import(database_url: str, path: Path) -> None:
    payload = json.loads(path.read_text(encoding="utf-8"))
    engine = make_engine(database_url)
    try:
        ctx = await create_context(engine)
        async with ctx.session_factory() as db:
            result = await import_backup(db, payload, ctx.search)
    finally:
        await engine.dispose()
    print(result.message)


def main() -> None:
    parser = argparse.ArgumentParser(description="Export or import an AlgoDeck backup")
    parser.add_argument("command", choices=["export", "import"])
    parser.add_argument("path", type=Path, help="Backup JSON file")
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="SQLAlchemy URL of the database (default: ALGODECK_DATABASE_URL or data/algodeck.db)",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        if args.command == "export":
            asyncio.run(run_export(args.database_url, args.path))
        else:
            asyncio.run(run_import(args.database_url, args.path))
    except (BackupValidationError, json.JSONDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
