import logging
from typing import Any, Callable, Dict, List, Sequence

from bankinsight.domain import Budget, Category, FinancialInsight, Transaction
from bankinsight.insights import ANALYZERS

logger = logging.getLogger(__name__)

Analyzer = Callable[[Sequence[Transaction], Sequence[Category], Sequence[Budget]], List[FinancialInsight]]


class InsightService:
    """Facade running injected analyzers over one snapshot.

    analyzers: sequence of functions taking (transactions, categories, budgets)
    and returning a list of FinancialInsight. Insights are regenerated from
    scratch on every call.
    """

    def __init__(self, analyzers: Sequence[Analyzer] = ANALYZERS):
        self.analyzers = analyzers

    def generate(
        self,
        transactions: Sequence[Transaction],
        categories: Sequence[Category] = (),
        budgets: Sequence[Budget] = (),
    ) -> List[FinancialInsight]:
        return self.report(transactions, categories, budgets)["insights"]

    def report(
        self,
        transactions: Sequence[Transaction],
        categories: Sequence[Category] = (),
        budgets: Sequence[Budget] = (),
    ) -> Dict[str, Any]:
        """Run every analyzer and return the insights with per-analyzer steps."""
        report: Dict[str, Any] = {"steps": [], "insights": []}
        for analyzer in self.analyzers:
            out = analyzer(transactions, categories, budgets)
            name = getattr(analyzer, "__name__", str(analyzer))
            report["steps"].append({"analyzer": name, "count": len(out)})
            report["insights"].extend(out)
            logger.debug("%s produced %d insights", name, len(out))
        return report
