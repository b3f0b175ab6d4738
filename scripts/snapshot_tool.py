"""
Snapshot export/import tool.

Backs up or restores the configured database without going through the API.

Usage::

    python scripts/snapshot_tool.py export backup.json
    python scripts/snapshot_tool.py import backup.json --duplicates overwrite --dry-run
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet_backend.app.core.exceptions import FormatError
from fleet_backend.app.core.observability import configure_logging
from fleet_backend.app.db.session import AsyncSessionLocal, Base, engine
from fleet_backend.app.models.snapshot_enums import DuplicateAction
from fleet_backend.app.services.audit import AuditAction, log_event
from fleet_backend.app.services.export_serializer import ExportSerializer
from fleet_backend.app.services.import_reconciler import ImportReconciler

ACTOR = "snapshot-tool"


async def export_snapshot(path: Path) -> None:
    async with AsyncSessionLocal() as db:
        snapshot = await ExportSerializer(db).export_json()
        await log_event(db, AuditAction.DATA_EXPORTED, actor_username=ACTOR, metadata={"file": str(path)})

    path.write_text(json.dumps(snapshot, indent=2))
    print(
        f"Exported {len(snapshot['inventory'])} inventory, {len(snapshot['soldVehicles'])} sold, "
        f"{len(snapshot['tradeIns'])} trade-ins, {len(snapshot['documents'])} documents to {path}"
    )


async def import_snapshot(path: Path, duplicates: DuplicateAction, dry_run: bool) -> int:
    data = json.loads(path.read_text())

    async with AsyncSessionLocal() as db:
        response = await ImportReconciler(db).reconcile(data, duplicate_action=duplicates, dry_run=dry_run)
        if not dry_run:
            await log_event(
                db,
                AuditAction.DATA_IMPORTED,
                actor_username=ACTOR,
                metadata={"file": str(path), "duplicate_action": duplicates.value, **response.summary.model_dump()},
            )

    label = "Dry run" if dry_run else "Import"
    summary = response.summary
    print(f"{label}: {summary.total_imported} imported, {summary.total_skipped} skipped, {summary.total_errors} errors")
    for kind, result in response.results:
        for error in result.errors:
            print(f"  {kind}[{error.index}] {error.vin or error.record_id or ''}: {error.error}")
    return 1 if summary.total_errors else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export or import a fleet inventory snapshot")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Write a snapshot of the database to a file")
    export_parser.add_argument("file", type=Path)

    import_parser = subparsers.add_parser("import", help="Merge a snapshot file into the database")
    import_parser.add_argument("file", type=Path)
    import_parser.add_argument(
        "--duplicates",
        choices=[action.value for action in DuplicateAction],
        default=DuplicateAction.SKIP.value,
        help="What to do with records whose VIN already exists (default: skip)",
    )
    import_parser.add_argument("--dry-run", action="store_true", help="Report what would change without writing")
    return parser


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        if args.command == "export":
            await export_snapshot(args.file)
            return 0
        return await import_snapshot(args.file, DuplicateAction(args.duplicates), args.dry_run)
    except FormatError as exc:
        print(f"Invalid snapshot: {exc.message}", file=sys.stderr)
        return 2
    finally:
        await engine.dispose()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
