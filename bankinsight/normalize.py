"""Turn raw statement fields into canonical Transaction values."""

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Iterable, Optional, Sequence, Tuple
from uuid import uuid4

from bankinsight.config import DEFAULT_CONFIG, FrequencyRule, ImportConfig, TagRule
from bankinsight.domain import CREDIT, DEBIT, Transaction
from bankinsight.errors import (
    INVALID_AMOUNT,
    INVALID_DATE,
    MISSING_REQUIRED_FIELD,
    ParseError,
)
from bankinsight.fields import FieldResolver
from bankinsight.functional import Either, Left, Right
from bankinsight.reader import RawRecord

DATE_FORMATS: Tuple[str, ...] = (
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%Y-%m-%d",
    "%d-%m-%y",
    "%Y%m%d",
)

# statements carry no time of day
NORMALIZED_HOUR = 12

CREDIT_TOKENS = frozenset({"bij", "credit", "cr", "c", "+"})
DEBIT_TOKENS = frozenset({"af", "debit", "dr", "d", "-"})

DESCRIPTION_SEPARATOR = " - "
UNKNOWN_DESCRIPTION = "Unknown transaction"


@lru_cache(maxsize=4096)
def parse_date(text: str) -> Either[ParseError, datetime]:
    value = text.strip()
    if not value:
        return Left(ParseError(MISSING_REQUIRED_FIELD, "Date is empty"))
    for fmt in DATE_FORMATS:
        try:
            day = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return Right(datetime(day.year, day.month, day.day, NORMALIZED_HOUR, tzinfo=timezone.utc))
    return Left(ParseError(INVALID_DATE, f"Invalid date format: '{value}'"))


def clean_amount(text: str, currency_symbols: Iterable[str] = DEFAULT_CONFIG.currency_symbols) -> str:
    cleaned = text
    for symbol in currency_symbols:
        cleaned = re.sub(re.escape(symbol), "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s+", "", cleaned)
    return cleaned.replace(".", "").replace(",", ".")


def parse_amount(
    text: str, currency_symbols: Iterable[str] = DEFAULT_CONFIG.currency_symbols
) -> Either[ParseError, Decimal]:
    """Parse a Dutch-formatted amount ("€ 1.234,56", "-12,34") into a signed Decimal."""
    if not text.strip():
        return Left(ParseError(MISSING_REQUIRED_FIELD, "Amount is empty"))
    cleaned = clean_amount(text, currency_symbols)
    if not cleaned or cleaned == "0":
        return Left(ParseError(INVALID_AMOUNT, f"Amount is invalid: '{text.strip()}'"))
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return Left(ParseError(INVALID_AMOUNT, f"Cannot parse amount: '{text.strip()}'"))
    if not amount.is_finite():
        return Left(ParseError(INVALID_AMOUNT, f"Cannot parse amount: '{text.strip()}'"))
    return Right(amount)


def infer_direction(marker: str, signed_amount: Decimal) -> str:
    token = marker.strip().lower()
    if token in CREDIT_TOKENS:
        return CREDIT
    if token in DEBIT_TOKENS:
        return DEBIT
    return DEBIT if signed_amount < 0 else CREDIT


def assemble_description(
    name: str, kind: str, remarks: str, noop_codes: Iterable[str] = DEFAULT_CONFIG.noop_codes
) -> str:
    parts = [name.strip()]
    if kind.strip() not in noop_codes:
        parts.append(kind.strip())
    parts.append(remarks.strip())
    parts = [p for p in parts if p]
    if not parts:
        return UNKNOWN_DESCRIPTION
    return DESCRIPTION_SEPARATOR.join(parts)


def extract_tags(text: str, rules: Iterable[TagRule] = DEFAULT_CONFIG.tag_rules) -> Tuple[str, ...]:
    lowered = text.lower()
    tags = []
    for rule in rules:
        if rule.tag not in tags and any(k in lowered for k in rule.keywords):
            tags.append(rule.tag)
    return tuple(tags)


def is_recurring(text: str, keywords: Iterable[str] = DEFAULT_CONFIG.recurring_keywords) -> bool:
    lowered = text.lower()
    return any(k in lowered for k in keywords)


def detect_frequency(
    description: str, rules: Iterable[FrequencyRule] = DEFAULT_CONFIG.frequency_rules
) -> Optional[str]:
    # independent of is_recurring: a flagged row may still have no frequency
    lowered = description.lower()
    for rule in rules:
        if any(p in lowered for p in rule.phrases):
            return rule.label
    return None


def _optional_balance(text: str, symbols: Sequence[str]) -> Optional[Decimal]:
    if not text:
        return None
    return parse_amount(text, symbols).get_or_else(None)


def normalize_record(
    record: RawRecord, resolver: FieldResolver, config: ImportConfig = DEFAULT_CONFIG
) -> Either[ParseError, Transaction]:
    fields = record.fields

    parsed = parse_date(resolver.value(fields, "date")).bind(
        lambda day: parse_amount(resolver.value(fields, "amount"), config.currency_symbols).map(
            lambda signed: (day, signed)
        )
    )
    if parsed.is_left():
        return Left(parsed.get_error().at(record.line))
    date, signed = parsed.get()

    name = resolver.value(fields, "description")
    kind = resolver.value(fields, "mutation_kind")
    remarks = resolver.value(fields, "remarks")
    raw_text = " ".join((name, kind, remarks))
    description = assemble_description(name, kind, remarks, config.noop_codes)

    return Right(Transaction(
        id=str(uuid4()),
        description=description,
        amount=abs(signed),
        date=date,
        direction=infer_direction(resolver.value(fields, "direction"), signed),
        category_id=None,
        account_number=resolver.value(fields, "account_number") or None,
        account_holder=resolver.value(fields, "account_holder") or None,
        balance_after=_optional_balance(resolver.value(fields, "balance_after"), config.currency_symbols),
        notes=remarks or None,
        tags=extract_tags(raw_text, config.tag_rules),
        is_recurring=is_recurring(raw_text, config.recurring_keywords),
        recurring_frequency=detect_frequency(description, config.frequency_rules),
    ))
