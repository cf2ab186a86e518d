from decimal import Decimal
from typing import Iterable, Optional, Set, Tuple

from bankinsight.domain import Category, Transaction

DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category("boodschappen", "Boodschappen", None, True),
    Category("huur", "Huur", None, True),
    Category("utilities", "Utilities", None, True),
    Category("vervoer", "Vervoer", None, True),
    Category("entertainment", "Entertainment", None, True),
    Category("gezondheid", "Gezondheid", None, True),
    Category("kleding", "Kleding", None, True),
    Category("eten-drinken", "Eten & Drinken", None, True),
    Category("sparen", "Sparen", None, True),
    Category("inkomen", "Inkomen", None, True),
)


def can_delete(cat: Category) -> bool:
    return not cat.is_system


def descendants(
    cats: Tuple[Category, ...], root: str, visited: Optional[Set[str]] = None
) -> Tuple[Category, ...]:
    # parent links are not cycle-checked on write, so guard against loops here
    if visited is None:
        visited = {root}
    children = tuple(c for c in cats if c.parent_id == root and c.id not in visited)
    visited.update(c.id for c in children)
    result = children
    for child in children:
        result += descendants(cats, child.id, visited)
    return result


def category_spending(
    cats: Tuple[Category, ...], trans: Iterable[Transaction], root_id: str
) -> Decimal:
    """Debit total of a category and its whole subtree."""
    ids = {root_id} | {c.id for c in descendants(cats, root_id)}
    return sum((t.amount for t in trans if t.is_debit and t.category_id in ids), Decimal("0"))
