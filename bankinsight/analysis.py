from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from bankinsight.domain import (
    DECREASING,
    INCREASING,
    STABLE,
    Category,
    CategorySpending,
    SpendingAnalysis,
    Transaction,
)
from bankinsight.functional import safe_category

UNCATEGORIZED = "uncategorized"
TOP_CATEGORY_LIMIT = 10


def in_window(start: datetime, end: datetime, include_end: bool = True):
    def _filter(t: Transaction) -> bool:
        return start <= t.date <= end if include_end else start <= t.date < end

    return _filter


def total_debits(trans: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in trans if t.is_debit), Decimal("0"))


def total_credits(trans: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in trans if t.is_credit), Decimal("0"))


def lazy_top_categories(
    trans: Iterable[Transaction], cats: Sequence[Category], k: int
) -> Iterator[CategorySpending]:
    """Yield up to k per-category debit totals, largest first."""
    totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    counts: Dict[str, int] = defaultdict(int)

    for t in trans:
        if t.is_debit:
            cid = t.category_id or UNCATEGORIZED
            totals[cid] += t.amount
            counts[cid] += 1

    grand_total = sum(totals.values(), Decimal("0"))
    ordered: List[Tuple[str, Decimal]] = sorted(totals.items(), key=lambda item: item[1], reverse=True)

    for cid, amount in ordered[: max(0, k)]:
        name = safe_category(cats, cid).map(lambda c: c.name).get_or_else(cid)
        percentage = float(amount / grand_total * 100) if grand_total > 0 else 0.0
        yield CategorySpending(cid, name, amount, counts[cid], percentage)


def trend_direction(current: Decimal, previous: Decimal) -> str:
    if current > previous:
        return INCREASING
    if current < previous:
        return DECREASING
    return STABLE


def analyze_spending_trends(
    trans: Sequence[Transaction],
    period_days: int,
    cats: Sequence[Category] = (),
    now: Optional[datetime] = None,
) -> SpendingAnalysis:
    """Aggregate the last `period_days` days and compare with the window before."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    period = timedelta(days=max(0, period_days))
    period_start = now - period
    previous_start = period_start - period

    current = [t for t in trans if in_window(period_start, now)(t)]
    previous = [t for t in trans if in_window(previous_start, period_start, include_end=False)(t)]

    total_income = total_credits(current)
    total_spending = total_debits(current)
    average_daily = total_spending / period_days if period_days > 0 else Decimal("0")

    return SpendingAnalysis(
        total_spending=total_spending,
        total_income=total_income,
        net_savings=total_income - total_spending,
        top_categories=tuple(lazy_top_categories(current, cats, TOP_CATEGORY_LIMIT)),
        average_daily_spending=average_daily,
        spending_trend=trend_direction(total_spending, total_debits(previous)),
        period_start=period_start,
        period_end=now,
    )
