import json
from dataclasses import fields, replace
from datetime import datetime, timezone
from decimal import Decimal
from functools import reduce
from typing import Any, Dict, Optional, Tuple

from bankinsight.domain import Budget, Category, Transaction
from bankinsight.insights import budget_spending


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def _optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else _decimal(value)


def _datetime(value: Any) -> datetime:
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _optional_datetime(value: Any) -> Optional[datetime]:
    return None if value is None else _datetime(value)


def _known(cls, d: Dict[str, Any]) -> Dict[str, Any]:
    # store exports carry extra columns (created_at, color, icon)
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in d.items() if k in names}


def transaction_from_dict(d: Dict[str, Any]) -> Transaction:
    return Transaction(**{
        **_known(Transaction, d),
        "amount": abs(_decimal(d["amount"])),
        "date": _datetime(d["date"]),
        "balance_after": _optional_decimal(d.get("balance_after")),
        "tags": tuple(d.get("tags", ())),
    })


def category_from_dict(d: Dict[str, Any]) -> Category:
    return Category(**{**_known(Category, d), "budget_percentage": _optional_decimal(d.get("budget_percentage"))})


def budget_from_dict(d: Dict[str, Any]) -> Budget:
    return Budget(**{
        **_known(Budget, d),
        "amount": _decimal(d["amount"]),
        "spent": _decimal(d.get("spent", 0)),
        "start_date": _datetime(d["start_date"]),
        "end_date": _optional_datetime(d.get("end_date")),
        "notification_threshold": _optional_decimal(d.get("notification_threshold")),
    })


def load_snapshot(
    path: str,
) -> Tuple[
    Tuple[Transaction, ...],
    Tuple[Category, ...],
    Tuple[Budget, ...],
]:
    """Read a store export (JSON with transactions, categories, budgets)."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    transactions = tuple(transaction_from_dict(t) for t in data.get("transactions", []))
    categories = tuple(category_from_dict(c) for c in data.get("categories", []))
    budgets = tuple(budget_from_dict(b) for b in data.get("budgets", []))

    return transactions, categories, budgets


def add_transactions(
    trans: Tuple[Transaction, ...], new: Tuple[Transaction, ...]
) -> Tuple[Transaction, ...]:
    return trans + tuple(new)


def reassign_category(
    trans: Tuple[Transaction, ...], tid: str, cat_id: Optional[str]
) -> Tuple[Transaction, ...]:
    return tuple(
        replace(t, category_id=cat_id) if t.id == tid else t
        for t in trans
    )


def record_spending(
    budgets: Tuple[Budget, ...], bid: str, additional: Decimal
) -> Tuple[Budget, ...]:
    """Add to a budget's spent total; remaining follows from amount - spent."""
    if additional < 0:
        raise ValueError("Budget spending can only grow")
    return tuple(
        replace(b, spent=b.spent + additional) if b.id == bid else b
        for b in budgets
    )


def apply_transactions_to_budgets(
    budgets: Tuple[Budget, ...], trans: Tuple[Transaction, ...]
) -> Tuple[Budget, ...]:
    """Accumulate newly imported debits into every active budget they match."""
    return reduce(
        lambda acc, b: record_spending(acc, b.id, budget_spending(b, trans)) if b.is_active else acc,
        budgets,
        budgets,
    )
