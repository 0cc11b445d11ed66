"""
Schema migrations for the ledger database.

Migrations are ``vNNN_name.sql`` files next to this module, applied in
version order. Each applied file is recorded in ``schema_migrations`` with a
checksum of its text; a file edited after it was applied stops the run
rather than being applied twice. An existing database file is copied aside
first and put back if the run raises.

Run ``stockledger-migrate --help`` for the command line.
"""

import asyncio
import hashlib
import re
import shutil
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

MIGRATION_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")

REQUIRED_TABLES = [
    "warehouses",
    "products",
    "stock_lines",
    "stock_movements",
    "cost_lots",
    "reorder_points",
    "audit_log",
    "schema_migrations",
]


@dataclass
class MigrationInfo:
    """A migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = MIGRATION_FILENAME.fullmatch(path.name)
        if match is None:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        return cls(
            version=match.group(1),
            name=match.group(2),
            path=path,
            checksum=digest[:16],
        )

    def read_sql(self) -> str:
        return self.path.read_text(encoding="utf-8")


@dataclass
class MigrationResult:
    """Outcome of applying one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


@dataclass
class MigrationCheck:
    """One finding from a pre- or post-migration check."""

    check: str
    status: str  # PASS, SKIPPED or FAILED
    message: str = ""
    details: dict = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.status == "FAILED"


def _resolve_db_path(db_path: Path | None) -> Path:
    return db_path if db_path is not None else get_settings().storage.db_path


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to the checksum recorded for each."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        # No schema_migrations table yet
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    """Highest applied version, or None for an empty database."""
    applied = await get_applied_migrations(conn)
    return max(applied, default=None)


def discover_migrations() -> list[MigrationInfo]:
    """Migration files in ``MIGRATIONS_DIR``, lowest version first."""
    found = []
    for path in MIGRATIONS_DIR.glob("v*.sql"):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError:
            logger.warning("migration_file_ignored", path=str(path))
    return sorted(found, key=lambda m: int(m.version))


def check_before(migration: MigrationInfo, applied: dict[str, str]) -> MigrationCheck:
    """Decide whether ``migration`` should run against ``applied``."""
    recorded = applied.get(migration.version)
    if recorded is None:
        return MigrationCheck("pending", "PASS")
    if recorded != migration.checksum:
        return MigrationCheck(
            "checksum_mismatch",
            "FAILED",
            f"Migration {migration.version} changed since it was applied",
            {"recorded": recorded, "current": migration.checksum},
        )
    return MigrationCheck("already_applied", "SKIPPED")


async def check_after(
    conn: aiosqlite.Connection, migration: MigrationInfo
) -> list[MigrationCheck]:
    """Confirm the migration was recorded and broke no foreign keys."""
    failures = []

    if migration.version not in await get_applied_migrations(conn):
        failures.append(
            MigrationCheck(
                "migration_not_recorded",
                "FAILED",
                f"Migration {migration.version} missing from schema_migrations",
            )
        )

    cursor = await conn.execute("PRAGMA foreign_key_check")
    violations = await cursor.fetchall()
    if violations:
        failures.append(
            MigrationCheck(
                "foreign_key_violation",
                "FAILED",
                f"{len(violations)} foreign key violation(s)",
            )
        )

    return failures


async def apply_migration(
    conn: aiosqlite.Connection, migration: MigrationInfo
) -> MigrationResult:
    """Run one migration script and record it."""
    logger.info("migration_started", version=migration.version, name=migration.name)
    started = time.monotonic()

    try:
        await conn.executescript(migration.read_sql())
        await conn.execute(
            """
            INSERT OR REPLACE INTO schema_migrations
                (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (migration.version, migration.name, migration.checksum, _elapsed_ms(started)),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        return MigrationResult(
            migration.version, migration.name, False, _elapsed_ms(started), str(e)
        )

    elapsed = _elapsed_ms(started)
    logger.info("migration_applied", version=migration.version, execution_time_ms=elapsed)
    return MigrationResult(migration.version, migration.name, True, elapsed)


def create_backup(db_path: Path) -> Path:
    """Copy the database file to ``<name>.backup_<timestamp>.db``."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("ledger_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    """Overwrite the database file with ``backup_path``."""
    shutil.copy2(backup_path, db_path)
    logger.warning("ledger_backup_restored", backup_path=str(backup_path))


async def _migrate(conn: aiosqlite.Connection) -> list[MigrationResult]:
    results: list[MigrationResult] = []
    applied = await get_applied_migrations(conn)

    for migration in discover_migrations():
        before = check_before(migration, applied)
        if before.status == "SKIPPED":
            continue
        if before.failed:
            logger.error("migration_refused", version=migration.version, **asdict(before))
            results.append(
                MigrationResult(migration.version, migration.name, False, 0, before.message)
            )
            break

        result = await apply_migration(conn, migration)
        if result.success:
            failures = await check_after(conn, migration)
            if failures:
                logger.error(
                    "migration_check_failed",
                    version=migration.version,
                    checks=[asdict(f) for f in failures],
                )
                result.success = False
                result.error = "; ".join(f.message for f in failures)
        results.append(result)
        if not result.success:
            break
        applied[migration.version] = migration.checksum

    return results


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the ledger database up to the newest schema.

    Args:
        db_path: Database file (default from StorageSettings)
        create_backup_before: Copy an existing file aside before migrating

    Returns:
        One result per migration attempted, empty when already current.
        A refused or unverified migration is reported as a failed result
        and the backup is kept.
    """
    db_path = _resolve_db_path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            results = await _migrate(conn)
    except Exception:
        logger.exception("ledger_migration_aborted", db_path=str(db_path))
        if backup_path is not None:
            restore_backup(db_path, backup_path)
        raise

    failed = [r.version for r in results if not r.success]
    if backup_path is not None and not failed:
        backup_path.unlink()

    if failed:
        logger.error(
            "ledger_schema_incomplete",
            db_path=str(db_path),
            failed=failed,
            backup_path=str(backup_path) if backup_path else None,
        )
    else:
        logger.info(
            "ledger_schema_ready",
            db_path=str(db_path),
            applied=[r.version for r in results],
        )
    return results


run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Applied and pending versions for the database file."""
    db_path = _resolve_db_path(db_path)
    available = [m.version for m in discover_migrations()]

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": available,
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    return {
        "exists": True,
        "current_version": max(applied, default=None),
        "applied_migrations": sorted(applied),
        "pending_migrations": [v for v in available if v not in applied],
        "total_migrations": len(available),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """Foreign key, page integrity and required table checks."""
    db_path = _resolve_db_path(db_path)

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = len(await cursor.fetchall())

        cursor = await conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {name for (name,) in await cursor.fetchall()}

    missing = [t for t in REQUIRED_TABLES if t not in tables]
    return [
        {
            "check": "foreign_keys",
            "status": "PASS" if violations == 0 else "FAIL",
            "violations": violations,
        },
        {
            "check": "integrity",
            "status": "PASS" if integrity == "ok" else "FAIL",
            "result": integrity,
        },
        {
            "check": "required_tables",
            "status": "PASS" if not missing else "FAIL",
            "missing": missing,
        },
    ]


def main() -> None:
    """Entry point for ``stockledger-migrate``."""
    import argparse

    parser = argparse.ArgumentParser(description="Stock ledger schema migrations")
    parser.add_argument("--db-path", type=Path, help="Database file (default from settings)")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--status", action="store_true", help="Show applied and pending versions")
    group.add_argument("--verify", action="store_true", help="Check schema integrity")
    parser.add_argument("--no-backup", action="store_true", help="Do not back up before migrating")
    args = parser.parse_args()

    async def run() -> int:
        if args.status:
            status = await get_migration_status(args.db_path)
            print(f"Database exists:    {status['exists']}")
            print(f"Current version:    {status['current_version'] or 'none'}")
            print(f"Applied migrations: {', '.join(status['applied_migrations']) or '-'}")
            print(f"Pending migrations: {', '.join(status['pending_migrations']) or '-'}")
            return 0

        if args.verify:
            checks = await verify_schema_integrity(args.db_path)
            for check in checks:
                extra = {k: v for k, v in check.items() if k not in ("check", "status")}
                print(f"[{check['status']}] {check['check']} {extra}")
            return 0 if all(c["status"] == "PASS" for c in checks) else 1

        results = await initialize_database(args.db_path, create_backup_before=not args.no_backup)
        if not results:
            print("Schema is up to date.")
        for result in results:
            outcome = "OK" if result.success else "FAILED"
            print(f"[{outcome}] v{result.version} {result.name} ({result.execution_time_ms}ms)")
            if result.error:
                print(f"    {result.error}")
        return 0 if all(r.success for r in results) else 1

    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
