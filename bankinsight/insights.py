"""Heuristic insight analyzers.

Each analyzer takes a read-only snapshot ``(transactions, categories, budgets)``
and returns zero or more FinancialInsight records. Degenerate input (no
transactions, zero variance, zero budget) yields fewer insights, never an
exception.
"""

import logging
import statistics
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple
from uuid import uuid4

from bankinsight.domain import (
    BUDGET_OPTIMIZATION,
    HIGH,
    LOW,
    MEDIUM,
    RECURRING_EXPENSE,
    SPENDING_PATTERN,
    UNUSUAL_ACTIVITY,
    Budget,
    Category,
    FinancialInsight,
    Transaction,
)

logger = logging.getLogger(__name__)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

PEAK_DAY_SHARE = Decimal("30")
PEAK_DAY_HIGH_SHARE = Decimal("50")
BUDGET_WARNING_UTILIZATION = Decimal("90")
ANOMALY_Z_SCORE = Decimal("2.0")
MIN_ANOMALY_SAMPLE = 2
RECURRING_MIN_COUNT = 3


def format_currency(amount: Decimal) -> str:
    return f"€{abs(amount):.2f}"


def _insight(insight_type: str, title: str, description: str, impact: str,
             suggestions: Sequence[str], confidence: float) -> FinancialInsight:
    return FinancialInsight(
        id=str(uuid4()),
        insight_type=insight_type,
        title=title,
        description=description,
        impact=impact,
        actionable=True,
        action_suggestions=tuple(suggestions),
        confidence_score=confidence,
        created_at=datetime.now(timezone.utc),
    )


def _debits(trans: Sequence[Transaction]) -> List[Transaction]:
    return [t for t in trans if t.is_debit]


def spending_by_weekday(trans: Sequence[Transaction]) -> Dict[int, Decimal]:
    totals: Dict[int, Decimal] = {}
    for t in _debits(trans):
        day = t.date.weekday()
        totals[day] = totals.get(day, Decimal("0")) + t.amount
    return totals


def analyze_spending_patterns(
    trans: Sequence[Transaction],
    cats: Sequence[Category] = (),
    budgets: Sequence[Budget] = (),
) -> List[FinancialInsight]:
    by_day = spending_by_weekday(trans)
    total_weekly = sum(by_day.values(), Decimal("0"))
    if total_weekly <= 0:
        return []

    peak_day = max(sorted(by_day), key=lambda d: by_day[d])
    amount = by_day[peak_day]
    share = amount / total_weekly * 100
    if share <= PEAK_DAY_SHARE:
        return []

    day = DAY_NAMES[peak_day]
    return [_insight(
        SPENDING_PATTERN,
        f"High spending on {day}",
        f"You spend {share:.1f}% of your weekly expenses on {day} ({format_currency(amount)}).",
        HIGH if share > PEAK_DAY_HIGH_SHARE else MEDIUM,
        (
            "Review which purchases cause this peak",
            "Consider setting a budget for this day",
            "Plan large purchases on other days",
        ),
        0.8,
    )]


def budget_spending(budget: Budget, trans: Sequence[Transaction]) -> Decimal:
    return sum(
        (
            t.amount for t in _debits(trans)
            if t.category_id == budget.category_id
            and t.date >= budget.start_date
            and (budget.end_date is None or t.date <= budget.end_date)
        ),
        Decimal("0"),
    )


def budget_utilization(budget: Budget, spent: Decimal) -> Decimal:
    if budget.amount <= 0:
        return Decimal("0")
    return spent / budget.amount * 100


def analyze_budget_performance(
    trans: Sequence[Transaction],
    cats: Sequence[Category] = (),
    budgets: Sequence[Budget] = (),
) -> List[FinancialInsight]:
    insights = []
    for b in budgets:
        if not b.is_active:
            continue
        spent = budget_spending(b, trans)
        utilization = budget_utilization(b, spent)
        if utilization > BUDGET_WARNING_UTILIZATION:
            insights.append(_insight(
                BUDGET_OPTIMIZATION,
                f"Budget almost reached: {b.name}",
                f"You have used {utilization:.1f}% of your budget for {b.name} "
                f"({format_currency(spent)} of {format_currency(b.amount)}).",
                HIGH,
                (
                    "Limit further spending in this category",
                    "Consider raising the budget if needed",
                    "Look for ways to save in this category",
                ),
                0.9,
            ))
    return insights


def debit_statistics(trans: Sequence[Transaction]) -> Tuple[Decimal, Decimal]:
    """Mean and sample standard deviation (n - 1) of the debit amounts.

    Callers must pass at least two debits.
    """
    amounts = [t.amount for t in _debits(trans)]
    return statistics.mean(amounts), statistics.stdev(amounts)


def detect_unusual_spending(
    trans: Sequence[Transaction],
    cats: Sequence[Category] = (),
    budgets: Sequence[Budget] = (),
) -> List[FinancialInsight]:
    debits = _debits(trans)
    if len(debits) < MIN_ANOMALY_SAMPLE:
        return []

    mean, std_dev = debit_statistics(debits)
    if std_dev == 0:
        return []

    insights = []
    for t in debits:
        z_score = (t.amount - mean) / std_dev
        if z_score > ANOMALY_Z_SCORE:
            insights.append(_insight(
                UNUSUAL_ACTIVITY,
                "Unusually large expense detected",
                f"The transaction '{t.description}' ({format_currency(t.amount)}) is "
                f"significantly higher than your average spending ({format_currency(mean)}).",
                MEDIUM,
                (
                    "Check that this expense is correct",
                    "Consider planning expenses like this in advance",
                ),
                0.7,
            ))
    return insights


def detect_recurring_expenses(
    trans: Sequence[Transaction],
    cats: Sequence[Category] = (),
    budgets: Sequence[Budget] = (),
) -> List[FinancialInsight]:
    groups: Dict[Tuple[str, Decimal], List[Transaction]] = defaultdict(list)
    for t in _debits(trans):
        groups[(t.description.lower(), t.amount)].append(t)

    insights = []
    for members in groups.values():
        count = len(members)
        if count < RECURRING_MIN_COUNT:
            continue
        average = sum((t.amount for t in members), Decimal("0")) / count
        insights.append(_insight(
            RECURRING_EXPENSE,
            "Recurring expense pattern detected",
            f"Found a pattern of {count} payments to '{members[0].description}' "
            f"averaging {format_currency(average)}.",
            LOW,
            (
                "Consider registering this as a fixed expense",
                "Look for cheaper alternatives if possible",
            ),
            0.8,
        ))
    return insights


ANALYZERS = (
    analyze_spending_patterns,
    analyze_budget_performance,
    detect_unusual_spending,
    detect_recurring_expenses,
)


def generate_insights(
    trans: Sequence[Transaction],
    cats: Sequence[Category] = (),
    budgets: Sequence[Budget] = (),
) -> List[FinancialInsight]:
    insights: List[FinancialInsight] = []
    for analyzer in ANALYZERS:
        insights.extend(analyzer(trans, cats, budgets))
    logger.info("Generated %d insights from %d transactions", len(insights), len(trans))
    return insights
