"""Aggregations over transaction snapshots.

Every function here is pure: it takes an iterable of ``Transaction`` values,
never touches the store, and returns plain numbers, lists or dicts.  Functions
that depend on "now" take an explicit ``today`` (defaulting to the system date).
"""

import calendar
from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Iterable, Iterator, Optional, Sequence

import numpy as np

from tracker.domain import Category, Transaction, TransactionType
from tracker.utils import month_bounds, shift_month

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


def _today(today: Optional[date]) -> date:
    return today or date.today()


def total_by_type(trans: Iterable[Transaction], type: TransactionType) -> float:
    return sum((t.amount for t in trans if t.type is type), 0.0)


def total_income(trans: Iterable[Transaction]) -> float:
    return total_by_type(trans, INCOME)


def total_expense(trans: Iterable[Transaction]) -> float:
    return total_by_type(trans, EXPENSE)


def balance(trans: Iterable[Transaction]) -> float:
    trans = tuple(trans)
    return total_income(trans) - total_expense(trans)


net_income = balance


def in_month(trans: Iterable[Transaction], month: int, year: int) -> tuple[Transaction, ...]:
    start, end = month_bounds(month, year)
    return tuple(t for t in trans if start <= t.date <= end)


def in_year(trans: Iterable[Transaction], year: int) -> tuple[Transaction, ...]:
    return tuple(t for t in trans if t.date.year == year)


def category_totals(trans: Iterable[Transaction], type: Optional[TransactionType] = None) -> list[dict[str, Any]]:
    """Per-category sums, largest first; equal sums keep first-seen order."""
    totals: dict[str, float] = defaultdict(float)
    for t in trans:
        if type is not None and t.type is not type:
            continue
        totals[t.category] += t.amount
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{"category": c, "total": total} for c, total in ordered]


def statistics(trans: Iterable[Transaction]) -> dict[str, Any]:
    stats: dict[str, Any] = {
        "total": 0.0,
        "count": 0,
        "income": 0.0,
        "expense": 0.0,
        "by_category": {},
        "by_month": {},
        "by_payment_method": {},
    }

    for t in trans:
        stats["count"] += 1
        stats["total"] += t.signed_amount
        if t.type is INCOME:
            stats["income"] += t.amount
        else:
            stats["expense"] += t.amount

        cat = stats["by_category"].setdefault(t.category, {"total": 0.0, "count": 0, "type": t.type})
        cat["total"] += t.amount
        cat["count"] += 1

        month = stats["by_month"].setdefault(t.month_key, {"income": 0.0, "expense": 0.0, "total": 0.0})
        month["income" if t.type is INCOME else "expense"] += t.amount
        month["total"] = month["income"] - month["expense"]

        method = stats["by_payment_method"].setdefault(t.payment_method.value, {"total": 0.0, "count": 0})
        method["total"] += t.amount
        method["count"] += 1

    flow = stats["income"] + stats["expense"]
    stats["income_percentage"] = stats["income"] / flow * 100 if stats["income"] > 0 else 0
    stats["expense_percentage"] = stats["expense"] / flow * 100 if stats["expense"] > 0 else 0

    ranked = sorted(stats["by_category"].items(), key=lambda item: item[1]["total"], reverse=True)
    stats["top_categories"] = [{"category": c, **data} for c, data in ranked[:5]]
    stats["average_transaction"] = flow / stats["count"] if stats["count"] else 0
    return stats


def monthly_trends(trans: Iterable[Transaction], months: int = 12, today: Optional[date] = None) -> list[dict[str, Any]]:
    """One entry per month of the trailing window ending this month, oldest first."""
    today = _today(today)
    buckets: dict[tuple[int, int], list[Transaction]] = defaultdict(list)
    for t in trans:
        buckets[(t.date.year, t.date.month)].append(t)

    trends = []
    for back in range(months - 1, -1, -1):
        month, year = shift_month(today.month, today.year, -back)
        bucket = buckets.get((year, month), [])
        income = total_income(bucket)
        expense = total_expense(bucket)
        trends.append({
            "month": month,
            "year": year,
            "month_name": calendar.month_abbr[month],
            "income": income,
            "expense": expense,
            "total": income - expense,
            "transaction_count": len(bucket),
        })
    return trends


def expense_ratios(trans: Iterable[Transaction]) -> list[dict[str, Any]]:
    trans = tuple(trans)
    expenses = total_expense(trans)
    if expenses == 0:
        return []
    return [
        {"category": c["category"], "amount": c["total"], "percentage": c["total"] / expenses * 100}
        for c in category_totals(trans, EXPENSE)
    ]


def _growth(current: float, previous: float) -> float:
    if previous > 0:
        return (current - previous) / previous * 100
    return 100 if current > 0 else 0


def year_over_year_growth(trans: Iterable[Transaction], year: Optional[int] = None, today: Optional[date] = None) -> dict[str, Any]:
    trans = tuple(trans)
    current_year = year or _today(today).year
    current, previous = in_year(trans, current_year), in_year(trans, current_year - 1)

    def compare(total) -> dict[str, float]:
        now, before = total(current), total(previous)
        return {"current": now, "previous": before, "growth": _growth(now, before)}

    return {
        "current_year": current_year,
        "previous_year": current_year - 1,
        "income": compare(total_income),
        "expenses": compare(total_expense),
    }


def savings_rate(income: float, expenses: float) -> float:
    if income <= 0:
        return 0
    return (income - expenses) / income * 100


def average_daily_spending(trans: Iterable[Transaction], days: int = 30, today: Optional[date] = None) -> float:
    if days <= 0:
        return 0.0
    since = _today(today) - timedelta(days=days)
    return sum((t.amount for t in trans if t.type is EXPENSE and t.date >= since), 0.0) / days


def budget_utilization(
    trans: Iterable[Transaction],
    category: str,
    budget_amount: float,
    period: str = "month",
    today: Optional[date] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> dict[str, Any]:
    """Spending against a budget for the current (or given) month, year, or all time."""
    today = _today(today)
    if period == "month":
        trans = in_month(trans, month or today.month, year or today.year)
    elif period == "year":
        trans = in_year(trans, year or today.year)

    spent = sum((t.amount for t in trans if t.type is EXPENSE and t.category == category), 0.0)
    if budget_amount > 0:
        utilization = spent / budget_amount * 100
    else:
        utilization = 100 if spent > 0 else 0
    return {
        "spent": spent,
        "budget": budget_amount,
        "utilization": min(utilization, 100),
        "remaining": max(budget_amount - spent, 0),
        "is_over_budget": spent > budget_amount,
    }


def variance(series: Sequence[float]) -> float:
    """Population variance (divides by N); 0 for an empty series."""
    values = np.asarray(list(series), dtype=float)
    if values.size == 0:
        return 0.0
    return float(np.var(values))


def _grade(score: float) -> str:
    for floor, grade in ((90, "A+"), (80, "A"), (70, "B"), (60, "C"), (50, "D")):
        if score >= floor:
            return grade
    return "F"


def financial_health_score(trans: Iterable[Transaction], today: Optional[date] = None) -> dict[str, Any]:
    """Heuristic 0-100 score for the current calendar month.

    Starts at 100 and applies four additive rules (savings rate, expense
    concentration, income variance over six months, and a spending-to-income
    proxy) before clamping.
    """
    trans = tuple(trans)
    today = _today(today)
    score = 100
    feedback: list[str] = []

    this_month = in_month(trans, today.month, today.year)
    income = total_income(this_month)
    expenses = total_expense(this_month)
    rate = savings_rate(income, expenses)

    if rate >= 20:
        score += 30
        feedback.append("Excellent savings rate!")
    elif rate >= 10:
        score += 20
        feedback.append("Good savings rate")
    elif rate >= 5:
        score += 10
        feedback.append("Average savings rate")
    else:
        score -= 10
        feedback.append("Low savings rate - consider increasing income or reducing expenses")

    ratios = expense_ratios(this_month)
    top_share = ratios[0]["percentage"] if ratios else 0
    if top_share <= 30:
        score += 20
        feedback.append("Well-diversified expenses")
    elif top_share <= 50:
        score += 10
        feedback.append("Moderately diversified expenses")
    else:
        score -= 10
        feedback.append("High concentration in one category - consider diversifying")

    income_variance = variance([m["income"] for m in monthly_trends(trans, 6, today)])
    if income_variance <= 0.1:
        score += 25
        feedback.append("Stable income stream")
    elif income_variance <= 0.3:
        score += 15
        feedback.append("Moderately stable income")
    else:
        score -= 15
        feedback.append("Highly variable income - consider building emergency fund")

    monthly_spend = average_daily_spending(trans, 30, today) * 30
    debt_ratio = monthly_spend / (income or 1)
    if debt_ratio <= 0.3:
        score += 25
        feedback.append("Healthy debt-to-income ratio")
    elif debt_ratio <= 0.5:
        score += 15
        feedback.append("Moderate debt-to-income ratio")
    else:
        score -= 25
        feedback.append("High debt-to-income ratio - focus on reducing expenses")

    score = max(0, min(100, score))
    return {
        "score": round(score),
        "grade": _grade(score),
        "feedback": feedback,
        "metrics": {
            "savings_rate": rate,
            "expense_diversity": 100 - top_share,
            "income_stability": 100 - income_variance * 100,
            "debt_ratio": debt_ratio * 100,
        },
    }


def top_categories(trans: Iterable[Transaction], cats: Iterable[Category], k: int) -> Iterator[tuple[str, float]]:
    """Lazily yield the ``k`` largest expense categories as (name, total) pairs."""
    name_by_id = {c.id: c.name for c in cats}
    for entry in category_totals(trans, EXPENSE)[: max(0, k)]:
        yield name_by_id.get(entry["category"], entry["category"]), entry["total"]
