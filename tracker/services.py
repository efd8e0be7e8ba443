from datetime import date
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from tracker import aggregation, projection
from tracker.domain import Budget, Category, Transaction, TransactionType
from tracker.transactions import TransactionStore

Calculator = Callable[[tuple[Transaction, ...], Dict[str, Any]], Dict[str, Any]]


def calc_totals(trans, acc):
    income = aggregation.total_income(trans)
    expense = aggregation.total_expense(trans)
    return {"income": income, "expense": expense, "balance": income - expense, "count": len(trans)}


def calc_categories(trans, acc):
    return {"categories": aggregation.category_totals(trans, TransactionType.EXPENSE)}


def calc_savings(trans, acc):
    # relies on calc_totals having run first
    return {"savings_rate": aggregation.savings_rate(acc.get("income", 0), acc.get("expense", 0))}


DEFAULT_CALCULATORS: tuple[Calculator, ...] = (calc_totals, calc_categories, calc_savings)


class ReportService:
    """Facade running the engines over the store's current snapshot.

    The store is injected; nothing here keeps state of its own beyond it. Every
    call reads a fresh snapshot, so results reflect the latest committed data.
    """

    def __init__(self, store: TransactionStore, calculators: Sequence[Calculator] = DEFAULT_CALCULATORS):
        self.store = store
        self.calculators = calculators

    def _snapshot(self, trans: Optional[Iterable[Transaction]]) -> tuple[Transaction, ...]:
        return self.store.get_all() if trans is None else tuple(trans)

    def _today(self) -> date:
        return self.store.today()

    def balance(self, trans=None) -> float:
        return aggregation.balance(self._snapshot(trans))

    def total_income(self, trans=None) -> float:
        return aggregation.total_income(self._snapshot(trans))

    def total_expense(self, trans=None) -> float:
        return aggregation.total_expense(self._snapshot(trans))

    net_income = balance

    def top_categories(self, categories: Iterable[Category], k: int = 5, trans=None) -> list[tuple[str, float]]:
        return list(aggregation.top_categories(self._snapshot(trans), categories, k))

    def category_totals(self, type: Optional[TransactionType] = None, trans=None) -> list[dict]:
        return aggregation.category_totals(self._snapshot(trans), type)

    def statistics(self, trans=None) -> dict:
        return aggregation.statistics(self._snapshot(trans))

    def monthly_trends(self, months: int = 12) -> list[dict]:
        return aggregation.monthly_trends(self.store.get_all(), months, self._today())

    def expense_ratios(self, trans=None) -> list[dict]:
        return aggregation.expense_ratios(self._snapshot(trans))

    def year_over_year_growth(self, year: Optional[int] = None) -> dict:
        return aggregation.year_over_year_growth(self.store.get_all(), year, self._today())

    def financial_health_score(self) -> dict:
        return aggregation.financial_health_score(self.store.get_all(), self._today())

    def average_daily_spending(self, days: int = 30) -> float:
        return aggregation.average_daily_spending(self.store.get_all(), days, self._today())

    def budget_utilization(self, category: str, amount: float, period: str = "month") -> dict:
        return aggregation.budget_utilization(self.store.get_all(), category, amount, period, self._today())

    def monthly_projection(self) -> dict:
        return projection.monthly_projection(self.store.get_all(), self._today())

    def budget_report(self, budgets: Iterable[Budget]) -> list[dict[str, Any]]:
        """Pair each budget with its utilization in the budget's own month."""
        trans = self.store.get_all()
        return [
            {
                **aggregation.budget_utilization(trans, b.category, b.amount, "month", month=b.month, year=b.year),
                "budget": b,
            }
            for b in budgets
        ]

    def monthly_report(self, month: int, year: int) -> Dict[str, Any]:
        """Run the calculators in order over one month, keeping every intermediate output."""
        trans = self.store.get_by_month(month, year)
        report: Dict[str, Any] = {"month": f"{year}-{month:02d}", "steps": [], "result": {}}

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(trans, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            acc.update(out)

        report["result"] = acc
        return report
