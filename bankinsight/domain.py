from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

CREDIT = "credit"
DEBIT = "debit"

SPENDING_PATTERN = "spending_pattern"
BUDGET_OPTIMIZATION = "budget_optimization"
UNUSUAL_ACTIVITY = "unusual_activity"
RECURRING_EXPENSE = "recurring_expense"

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"


@dataclass(frozen=True)
class Transaction:
    id: str
    description: str
    amount: Decimal          # always the absolute magnitude
    date: datetime           # timezone-aware, UTC
    direction: str           # CREDIT or DEBIT
    category_id: Optional[str] = None
    account_number: Optional[str] = None
    account_holder: Optional[str] = None
    balance_after: Optional[Decimal] = None
    notes: Optional[str] = None
    tags: Tuple[str, ...] = ()
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None  # weekly | monthly | quarterly | yearly

    @property
    def is_debit(self) -> bool:
        return self.direction == DEBIT

    @property
    def is_credit(self) -> bool:
        return self.direction == CREDIT


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    parent_id: Optional[str] = None
    is_system: bool = False
    budget_percentage: Optional[Decimal] = None


@dataclass(frozen=True)
class Budget:
    id: str
    name: str
    category_id: Optional[str]
    amount: Decimal
    start_date: datetime
    period: str = "monthly"
    spent: Decimal = Decimal("0")
    is_active: bool = True
    end_date: Optional[datetime] = None
    notification_threshold: Optional[Decimal] = None

    @property
    def remaining(self) -> Decimal:
        return self.amount - self.spent


@dataclass(frozen=True)
class FinancialInsight:
    id: str
    insight_type: str
    title: str
    description: str
    impact: str
    actionable: bool
    action_suggestions: Tuple[str, ...]
    confidence_score: float
    created_at: datetime


@dataclass(frozen=True)
class CategorySpending:
    category_id: str
    category_name: str
    amount: Decimal
    transaction_count: int
    percentage: float


@dataclass(frozen=True)
class SpendingAnalysis:
    total_spending: Decimal
    total_income: Decimal
    net_savings: Decimal
    top_categories: Tuple[CategorySpending, ...]
    average_daily_spending: Decimal
    spending_trend: str
    period_start: datetime
    period_end: datetime


@dataclass
class ImportResult:
    """Outcome of one statement import batch.

    transactions keep encounter order; errors and warnings are human-readable
    messages that cite the offending line.
    """
    transactions: List[Transaction] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    total_rows: int = 0
    imported_rows: int = 0
