"""Statement import: CSV text in, ImportResult out.

Row-level problems never abort a batch; they are reported in
``ImportResult.errors`` and the offending row is skipped. Only failing to read
the source at all (``IoFailure``) is fatal.
"""

import csv
import logging
from dataclasses import replace
from typing import Optional

from bankinsight.categorize import DuplicateTracker, categorized
from bankinsight.config import DEFAULT_CONFIG, ImportConfig
from bankinsight.domain import ImportResult
from bankinsight.errors import IoFailure
from bankinsight.fields import FieldResolver, missing_headers, validate_structure
from bankinsight.normalize import normalize_record
from bankinsight.reader import read_csv

logger = logging.getLogger(__name__)

EMPTY_IMPORT_WARNING = "No valid transactions found in the CSV file"
REQUIRED_FIELDS = ("date", "amount")


def _resolver(header, config: ImportConfig) -> FieldResolver:
    if config.has_header and header is not None:
        return FieldResolver.from_header(header, config.header_synonyms)
    return FieldResolver.from_mapping(config.column_mapping)


def import_statement(text: str, config: Optional[ImportConfig] = None) -> ImportResult:
    config = config or DEFAULT_CONFIG
    result = ImportResult()

    try:
        header, records = read_csv(text, config.delimiter, config.has_header)
    except csv.Error as e:
        result.errors.append(f"Line 1: Malformed header row: {e}")
        result.warnings.append(EMPTY_IMPORT_WARNING)
        logger.warning("Import aborted, unreadable header: %s", e)
        return result

    if header is not None and config.required_headers:
        missing = missing_headers(header, config.required_headers)
        if missing:
            logger.info("Header is missing expected columns: %s", ", ".join(missing))

    resolver = _resolver(header, config)
    unresolved = [f for f in REQUIRED_FIELDS if not resolver.has(f)]
    if unresolved:
        logger.warning("No column found for: %s", ", ".join(unresolved))
    tracker = DuplicateTracker()

    for item in records:
        result.total_rows += 1
        if item.is_left():
            err = item.get_error()
            result.errors.append(str(err))
            logger.debug("Skipping row: %s", err)
            continue

        record = item.get()
        parsed = normalize_record(record, resolver, config)
        if parsed.is_left():
            err = parsed.get_error()
            result.errors.append(str(err))
            logger.debug("Skipping row: %s", err)
            continue

        transaction = parsed.get()
        if config.auto_categorize:
            transaction = categorized(transaction, config.category_rules)

        if tracker.seen(transaction):
            message = (
                f"Possible duplicate on line {record.line}: {transaction.description} "
                f"({transaction.date:%d-%m-%Y}: {transaction.amount})"
            )
            result.warnings.append(message)
            logger.info(message)

        result.transactions.append(transaction)

    result.imported_rows = len(result.transactions)
    if not result.transactions:
        result.warnings.append(EMPTY_IMPORT_WARNING)

    logger.info(
        "Imported %d of %d rows (%d distinct, %d errors, %d warnings) using dialect '%s'",
        result.imported_rows, result.total_rows, len(tracker), len(result.errors), len(result.warnings), config.bank,
    )
    return result


def import_file(
    path: str, config: Optional[ImportConfig] = None, encoding: Optional[str] = None
) -> ImportResult:
    config = config or DEFAULT_CONFIG
    try:
        with open(path, "r", encoding=encoding or config.encoding, newline="") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise IoFailure(f"Cannot read statement file {path}: {e}") from e
    logger.info("Read %d characters from %s", len(text), path)
    return import_statement(text, config)


def preview_statement(text: str, limit: Optional[int] = None, config: Optional[ImportConfig] = None) -> ImportResult:
    result = import_statement(text, config)
    if limit is not None:
        result = replace(result, transactions=result.transactions[:max(0, limit)])
    return result


def validate_csv_structure(text: str, config: Optional[ImportConfig] = None) -> bool:
    config = config or DEFAULT_CONFIG
    try:
        header, _ = read_csv(text, config.delimiter, has_header=True)
    except csv.Error:
        return False
    return validate_structure(header, config.required_headers)
