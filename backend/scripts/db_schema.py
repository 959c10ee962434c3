"""Schema maintenance for the document collections.

Usage::

	python backend/scripts/db_schema.py status
	python backend/scripts/db_schema.py migrate
	python backend/scripts/db_schema.py reset-versioned --yes
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

# Allow running from the repo root without installing the package
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from cph.infra.docstore import build_document_store
from cph.infra.schema import SchemaVersion
from cph.maintenance import schema_migration
from cph.obs.logging import configure_logging
from cph.settings import Settings


def _parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(description="Manage legacy/versioned document collections")
	parser.add_argument("command", choices=("migrate", "status", "reset-legacy", "reset-versioned"))
	parser.add_argument("--version", dest="schema_version", help="Schema version tag, e.g. v1 (defaults to DB_SCHEMA_VERSION)")
	parser.add_argument("--yes", action="store_true", help="Confirm destructive reset commands")
	return parser.parse_args()


def _pad(value: object, width: int) -> str:
	return str(value).ljust(width)


def _print_status(version: SchemaVersion, reports, meta) -> None:
	print(f"[db:schema:status] schema={version.tag}, namespace={version.namespace}")
	print()
	print(
		f"{_pad('key', 22)} {_pad('legacyCollection', 34)} {_pad('legacyCount', 13)} "
		f"{_pad('versionedCollection', 40)} {_pad('versionedCount', 13)}"
	)
	print("-" * 126)
	for report in reports:
		print(
			f"{_pad(report.key, 22)} {_pad(report.legacy_collection, 34)} {_pad(report.legacy_count, 13)} "
			f"{_pad(report.versioned_collection, 40)} {_pad(report.versioned_count, 13)}"
		)
	print()
	if meta is None:
		print("[db:schema:status] no schema metadata doc found")
	else:
		print(f"[db:schema:status] meta: {meta}")


async def run(command: str, schema_version: str | None) -> int:
	config = Settings()
	if schema_version:
		config.schema_version = schema_version
	version = SchemaVersion(config.schema_version)
	store = await build_document_store(config)
	try:
		if command == "status":
			reports, meta = await schema_migration.status(store, version)
			_print_status(version, reports, meta)
		elif command == "migrate":
			for report in await schema_migration.migrate(store, version):
				print(
					f"[db:migrate:{version.tag}] {report.key} :: {report.legacy_collection} ({report.legacy_count}) -> "
					f"{report.versioned_collection} ({report.versioned_count}), copied={report.copied}"
				)
			print(f"[db:migrate:{version.tag}] migration complete")
		elif command == "reset-legacy":
			for name, deleted in (await schema_migration.reset_legacy(store, version)).items():
				print(f"[db:reset:legacy] {name}: deleted={deleted}")
		else:
			for name, deleted in (await schema_migration.reset_versioned(store, version)).items():
				print(f"[db:reset:versioned] {name}: deleted={deleted}")
	finally:
		await store.close()
	return 0


def main() -> None:
	load_dotenv()
	configure_logging()
	args = _parse_args()
	if args.command.startswith("reset-") and not args.yes:
		raise SystemExit(f"{args.command} deletes data; re-run with --yes to confirm")
	sys.exit(asyncio.run(run(args.command, args.schema_version)))


if __name__ == "__main__":
	main()
