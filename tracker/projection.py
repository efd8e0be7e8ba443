"""Forward-looking projections: month-end extrapolation and savings/loan schedules."""

from datetime import date
from typing import Any, Iterable, Optional

from tracker.aggregation import in_month, total_expense, total_income
from tracker.domain import Transaction
from tracker.utils import days_in_month


def monthly_projection(trans: Iterable[Transaction], today: Optional[date] = None) -> dict[str, Any]:
    """Extrapolate this month's income and expenses linearly to month end."""
    today = today or date.today()
    this_month = in_month(trans, today.month, today.year)
    income = total_income(this_month)
    expenses = total_expense(this_month)

    total_days = days_in_month(today.month, today.year)
    elapsed = max(today.day, 1)
    remaining = total_days - elapsed

    daily_income = income / elapsed
    daily_expense = expenses / elapsed
    projected_income = income + daily_income * remaining
    projected_expenses = expenses + daily_expense * remaining

    return {
        "current": {"income": income, "expenses": expenses, "balance": income - expenses},
        "projected": {
            "income": projected_income,
            "expenses": projected_expenses,
            "balance": projected_income - projected_expenses,
        },
        "averages": {"daily_income": daily_income, "daily_expense": daily_expense},
        "days": {"passed": elapsed, "remaining": remaining, "total": total_days},
    }


def compound_interest(principal: float, rate: float, years: int, compounds_per_year: int = 12) -> dict[str, Any]:
    """``rate`` is an annual percentage; breakdown has one entry per whole year."""
    periodic = rate / 100 / compounds_per_year

    def grown(year: float) -> float:
        return principal * (1 + periodic) ** (compounds_per_year * year)

    amount = grown(years)
    return {
        "principal": principal,
        "rate": rate,
        "time": years,
        "amount": amount,
        "interest": amount - principal,
        "breakdown": [
            {"year": y, "amount": grown(y), "interest": grown(y) - principal}
            for y in range(1, int(years) + 1)
        ],
    }


def loan_amortization(principal: float, rate: float, years: int) -> dict[str, Any]:
    """Fixed-payment schedule; a zero rate repays principal in equal parts."""
    monthly_rate = rate / 100 / 12
    payments = int(years * 12)
    if payments <= 0:
        return {"monthly_payment": 0.0, "total_payment": 0.0, "total_interest": 0.0, "amortization": []}

    if monthly_rate == 0:
        payment = principal / payments
    else:
        factor = (1 + monthly_rate) ** payments
        payment = principal * monthly_rate * factor / (factor - 1)

    schedule = []
    balance = principal
    for month in range(1, payments + 1):
        interest = balance * monthly_rate
        principal_part = payment - interest
        balance -= principal_part
        schedule.append({
            "month": month,
            "payment": payment,
            "principal": principal_part,
            "interest": interest,
            "remaining_balance": max(balance, 0),
        })

    total = payment * payments
    return {
        "monthly_payment": payment,
        "total_payment": total,
        "total_interest": total - principal,
        "amortization": schedule,
    }


def retirement_projection(
    current_age: int,
    retirement_age: int,
    current_savings: float,
    monthly_contribution: float,
    expected_return: float,
) -> dict[str, Any]:
    """Monthly loop: contribute, then grow. One snapshot per completed year."""
    years = retirement_age - current_age
    months = max(years * 12, 0)
    monthly_return = expected_return / 100 / 12

    total = current_savings
    projection = []
    for month in range(1, months + 1):
        total += monthly_contribution
        total *= 1 + monthly_return
        if month % 12 == 0:
            contributed = monthly_contribution * month
            projection.append({
                "age": current_age + month // 12,
                "year": month // 12,
                "total": total,
                "contributions": contributed,
                "growth": total - current_savings - contributed,
            })

    contributions = monthly_contribution * months
    return {
        "current_age": current_age,
        "retirement_age": retirement_age,
        "years_to_retirement": years,
        "final_amount": total,
        "total_contributions": contributions,
        "total_growth": total - current_savings - contributions,
        "projection": projection,
    }
