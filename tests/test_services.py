from datetime import datetime, timezone
from decimal import Decimal

from bankinsight.domain import DEBIT, Transaction
from bankinsight.insights import detect_recurring_expenses
from bankinsight.services import InsightService


def make_tx(id, amount, description):
    return Transaction(
        id=id,
        description=description,
        amount=Decimal(amount),
        date=datetime(2024, 11, 11, 12, tzinfo=timezone.utc),
        direction=DEBIT,
    )


def test_insight_service_runs_injected_analyzers():
    def a_none(trans, cats, budgets):
        return []

    trans = [make_tx(f"t{i}", "4.50", "Gym") for i in range(3)]
    svc = InsightService(analyzers=[a_none, detect_recurring_expenses])
    rpt = svc.report(trans, [], [])

    assert rpt["steps"] == [
        {"analyzer": "a_none", "count": 0},
        {"analyzer": "detect_recurring_expenses", "count": 1},
    ]
    assert len(rpt["insights"]) == 1


def test_insight_service_regenerates_each_call():
    trans = [make_tx(f"t{i}", "4.50", "Gym") for i in range(3)]
    svc = InsightService()

    first = svc.generate(trans)
    second = svc.generate(trans)

    assert len(first) == len(second)
    assert {i.id for i in first}.isdisjoint({i.id for i in second})


def test_insight_service_empty_snapshot():
    assert InsightService().generate([], [], []) == []
