import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from bankinsight.domain import CREDIT, DEBIT, Budget, Transaction
from bankinsight.transforms import (
    add_transactions,
    apply_transactions_to_budgets,
    load_snapshot,
    reassign_category,
    record_spending,
)


def make_tx(id, amount, cat_id=None, direction=DEBIT):
    return Transaction(
        id=id,
        description=id,
        amount=Decimal(amount),
        date=datetime(2024, 11, 12, 12, tzinfo=timezone.utc),
        direction=direction,
        category_id=cat_id,
    )


def make_budget(id, amount, cat_id, spent="0", active=True):
    return Budget(
        id=id,
        name=id,
        category_id=cat_id,
        amount=Decimal(amount),
        start_date=datetime(2024, 11, 1, tzinfo=timezone.utc),
        spent=Decimal(spent),
        is_active=active,
    )


def test_load_snapshot(tmp_path):
    data = {
        "transactions": [
            {"id": "t1", "description": "Albert Heijn", "amount": "-12.34",
             "date": "2024-11-12T12:00:00+00:00", "direction": "debit",
             "category_id": "supermarkt", "tags": ["card-payment"]},
            {"id": "t2", "description": "Salaris", "amount": 2500,
             "date": "2024-11-25", "direction": "credit"},
        ],
        "categories": [
            {"id": "supermarkt", "name": "Supermarkt", "is_system": True, "budget_percentage": "15"},
        ],
        "budgets": [
            {"id": "b1", "name": "Food", "category_id": "supermarkt", "amount": "300",
             "spent": "120.50", "start_date": "2024-11-01"},
        ],
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    trans, cats, budgets = load_snapshot(str(path))

    assert trans[0].amount == Decimal("12.34")
    assert trans[0].tags == ("card-payment",)
    assert trans[1].date == datetime(2024, 11, 25, tzinfo=timezone.utc)
    assert trans[1].direction == CREDIT
    assert cats[0].budget_percentage == Decimal("15")
    assert budgets[0].remaining == Decimal("179.50")
    assert budgets[0].end_date is None


def test_load_snapshot_ignores_extra_store_columns(tmp_path):
    data = {
        "transactions": [
            {"id": "t1", "description": "Jumbo", "amount": "5.00", "date": "2024-11-13",
             "direction": "debit", "created_at": "2024-11-13T08:00:00", "imported_at": None},
        ],
        "categories": [
            {"id": "food", "name": "Food", "color": "#ff0000", "icon": "cart"},
        ],
        "budgets": [
            {"id": "b1", "name": "Food", "category_id": "food", "amount": "100",
             "start_date": "2024-11-01", "remaining": "100", "created_at": "2024-11-01"},
        ],
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    trans, cats, budgets = load_snapshot(str(path))

    assert trans[0].description == "Jumbo"
    assert cats[0].name == "Food"
    assert budgets[0].remaining == Decimal("100")


def test_add_transactions_is_immutable():
    trans = (make_tx("t1", "10"),)
    new = add_transactions(trans, (make_tx("t2", "5"),))

    assert len(new) == 2
    assert len(trans) == 1


def test_reassign_category_only_touches_target():
    trans = (make_tx("t1", "10"), make_tx("t2", "5", cat_id="food"))
    new = reassign_category(trans, "t1", "transport")

    assert new[0].category_id == "transport"
    assert new[1].category_id == "food"
    assert trans[0].category_id is None


def test_record_spending_keeps_remaining_derived():
    budgets = (make_budget("b1", "100", "food"), make_budget("b2", "50", "transport"))
    new = record_spending(budgets, "b1", Decimal("30"))

    assert new[0].spent == Decimal("30")
    assert new[0].remaining == Decimal("70")
    assert new[1].spent == Decimal("0")
    assert budgets[0].spent == Decimal("0")


def test_record_spending_rejects_negative():
    with pytest.raises(ValueError):
        record_spending((make_budget("b1", "100", "food"),), "b1", Decimal("-1"))


def test_apply_transactions_to_budgets():
    budgets = (
        make_budget("b1", "100", "food", spent="10"),
        make_budget("b2", "50", "transport"),
        make_budget("b3", "50", "food", active=False),
    )
    trans = (
        make_tx("t1", "20", cat_id="food"),
        make_tx("t2", "5", cat_id="food", direction=CREDIT),
        make_tx("t3", "7", cat_id="transport"),
    )
    new = apply_transactions_to_budgets(budgets, trans)

    assert [b.spent for b in new] == [Decimal("30"), Decimal("7"), Decimal("0")]
    assert new[0].remaining == Decimal("70")
