"""
Seed script to bulk-load feature permissions from a CSV file.

The CSV needs a header row with the columns:
- email
- featureName
- enable (true/false, yes/no, 1/0, t/f, y/n)

Rows are validated with the same rules as POST /feature. Invalid rows are
skipped and reported; valid rows are upserted, so re-running the script on
the same file is a no-op.

Usage:
    uv run python -m scripts.seed_permissions permissions.csv
"""
import asyncio
import csv
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from app.core import config
from app.core.database.engine import create_store, init_db
from app.core.database.store import DocumentStore, UpsertStatus
from app.features.permissions.validators import (
    INVALID_EMAIL,
    INVALID_FEATURE_NAME,
    validate_email,
    validate_feature_name,
)
from app.utils import get_logger


log = get_logger(__name__)

REQUIRED_COLUMNS = ("email", "featureName", "enable")
TRUE_VALUES = ("true", "yes", "1", "t", "y")
FALSE_VALUES = ("false", "no", "0", "f", "n")


@dataclass
class SeedResult:
    processed: int = 0
    written: int = 0
    unchanged: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def parse_flag(value: str | None) -> bool | None:
    """
    Parse a CSV boolean cell.

    Returns:
        True or False for a recognized value (case-insensitive, surrounding
        whitespace ignored), None for anything else.
    """
    if value is None:
        return None
    value = value.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return None


def validate_row(row: dict, row_number: int) -> list[str]:
    """
    Check a CSV row against the write rules.

    Returns:
        Error messages prefixed with "Row {row_number}: ", empty when the row is valid.
    """
    errors = []
    for column in REQUIRED_COLUMNS:
        value = row.get(column)
        if not value or not value.strip():
            errors.append(f"Row {row_number}: Missing required field '{column}'")
    if errors:
        return errors

    if not validate_email(row["email"].strip()):
        errors.append(f"Row {row_number}: {INVALID_EMAIL}")
    if not validate_feature_name(row["featureName"].strip()):
        errors.append(f"Row {row_number}: {INVALID_FEATURE_NAME}")
    if parse_flag(row["enable"]) is None:
        errors.append(f"Row {row_number}: enable must be true or false")
    return errors


async def seed_permissions(store: DocumentStore, rows: Iterable[dict]) -> SeedResult:
    """Upsert every valid row; rows start at 2 to match the line number under the header."""
    result = SeedResult()

    for row_number, row in enumerate(rows, start=2):
        result.processed += 1
        errors = validate_row(row, row_number)
        if errors:
            result.skipped += 1
            result.errors.extend(errors)
            log.warning("Skipping row %d: %s", row_number, "; ".join(errors))
            continue

        outcome = await store.upsert(
            config.PERMISSIONS_COLLECTION,
            {"email": row["email"].strip(), "feature_name": row["featureName"].strip()},
            {"enabled": parse_flag(row["enable"])},
        )
        if outcome.status is UpsertStatus.UNCHANGED:
            result.unchanged += 1
        else:
            result.written += 1

    log.info(
        "Processed %d rows: %d written, %d unchanged, %d skipped",
        result.processed, result.written, result.unchanged, result.skipped,
    )
    return result


def read_rows(path: Path) -> list[dict]:
    """Read the CSV file, accepting a UTF-8 BOM."""
    with path.open(newline="", encoding="utf-8-sig") as handle:
        return list(csv.DictReader(handle))


async def main(path: Path) -> SeedResult:
    """Seed permissions from path into the configured database."""
    log.info("Starting permission seeding from %s", path)
    store = create_store(config.SQLALCHEMY_DATABASE_URL, timeout=config.STORE_TIMEOUT_SECONDS)
    try:
        await init_db(store, config.PERMISSIONS_COLLECTION)
        return await seed_permissions(store, read_rows(path))
    finally:
        await store.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        sys.exit("usage: python -m scripts.seed_permissions <file.csv>")
    seed_result = asyncio.run(main(Path(sys.argv[1])))
    for message in seed_result.errors:
        log.warning(message)
