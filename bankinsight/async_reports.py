import asyncio
from typing import List, Optional, Sequence

from bankinsight.config import ImportConfig
from bankinsight.domain import Budget, Category, FinancialInsight, ImportResult, Transaction
from bankinsight.importer import import_statement
from bankinsight.services import Analyzer
from bankinsight.insights import ANALYZERS


async def generate_insights_concurrently(
    trans: Sequence[Transaction],
    cats: Sequence[Category] = (),
    budgets: Sequence[Budget] = (),
    analyzers: Sequence[Analyzer] = ANALYZERS,
) -> List[FinancialInsight]:
    """Run the analyzers in parallel; results keep analyzer order.

    Analyzers only read their inputs, so they share the snapshot safely.
    """
    async def run(analyzer: Analyzer) -> List[FinancialInsight]:
        await asyncio.sleep(0)  # cooperate
        return analyzer(trans, cats, budgets)

    results = await asyncio.gather(*(run(a) for a in analyzers))
    return [insight for batch in results for insight in batch]


async def import_statements(
    texts: Sequence[str], config: Optional[ImportConfig] = None
) -> List[ImportResult]:
    """Import several statements in parallel, one independent batch each."""
    async def run(text: str) -> ImportResult:
        await asyncio.sleep(0)
        return import_statement(text, config)

    return list(await asyncio.gather(*(run(t) for t in texts)))
