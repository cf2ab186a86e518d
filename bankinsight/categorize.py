from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Set, Tuple

from bankinsight.config import DEFAULT_CONFIG, CategoryRule
from bankinsight.domain import Transaction

DuplicateKey = Tuple[datetime, str, Decimal]


def auto_categorize(
    description: str, rules: Iterable[CategoryRule] = DEFAULT_CONFIG.category_rules
) -> Optional[str]:
    """Return the first category whose keyword occurs in the description.

    Matching is a lower-case substring test, so rule order decides ties.
    """
    desc = description.lower()
    for rule in rules:
        for keyword in rule.keywords:
            if keyword in desc:
                return rule.category_id
    return None


def categorized(
    t: Transaction, rules: Iterable[CategoryRule] = DEFAULT_CONFIG.category_rules
) -> Transaction:
    return replace(t, category_id=auto_categorize(t.description, rules))


def duplicate_key(t: Transaction) -> DuplicateKey:
    return (t.date, t.description, t.amount)


class DuplicateTracker:
    """Remembers accepted rows of one import batch.

    The first occurrence of a (date, description, amount) key is never
    reported; every later one is.
    """

    def __init__(self):
        self._seen: Set[DuplicateKey] = set()

    def seen(self, t: Transaction) -> bool:
        key = duplicate_key(t)
        if key in self._seen:
            return True
        self._seen.add(key)
        return False

    def __len__(self) -> int:
        return len(self._seen)
