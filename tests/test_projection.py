import pytest

from conftest import TODAY, make_tx
from tracker.projection import compound_interest, loan_amortization, monthly_projection, retirement_projection


def test_compound_interest():
    result = compound_interest(1000, 5, 2, 12)
    assert result["amount"] == pytest.approx(1104.94, abs=0.01)
    assert result["interest"] == pytest.approx(104.94, abs=0.01)
    assert [b["year"] for b in result["breakdown"]] == [1, 2]
    assert result["breakdown"][-1]["amount"] == pytest.approx(result["amount"])


def test_zero_rate_loan_is_straight_line():
    loan = loan_amortization(1200, 0, 1)
    assert loan["monthly_payment"] == 100
    assert loan["total_interest"] == 0
    assert len(loan["amortization"]) == 12
    assert all(row["interest"] == 0 for row in loan["amortization"])
    assert loan["amortization"][-1]["remaining_balance"] == pytest.approx(0, abs=1e-9)


def test_loan_schedule_pays_off():
    loan = loan_amortization(10000, 6, 5)
    assert loan["monthly_payment"] == pytest.approx(193.33, abs=0.01)
    schedule = loan["amortization"]
    assert len(schedule) == 60
    assert schedule[0]["interest"] == pytest.approx(50)
    assert schedule[-1]["remaining_balance"] == pytest.approx(0, abs=1e-6)
    assert sum(row["interest"] for row in schedule) == pytest.approx(loan["total_interest"])


def test_loan_without_term():
    assert loan_amortization(500, 5, 0)["amortization"] == []


def test_retirement_projection_snapshots_each_year():
    plan = retirement_projection(30, 32, 1000, 100, 0)
    assert plan["years_to_retirement"] == 2
    assert plan["final_amount"] == pytest.approx(3400)
    assert plan["total_contributions"] == 2400
    assert plan["total_growth"] == pytest.approx(0)
    assert [p["age"] for p in plan["projection"]] == [31, 32]
    assert plan["projection"][0]["total"] == pytest.approx(2200)


def test_retirement_growth_is_positive_with_returns():
    plan = retirement_projection(40, 50, 5000, 200, 7)
    assert plan["total_growth"] > 0
    assert plan["final_amount"] == pytest.approx(plan["projection"][-1]["total"])


def test_monthly_projection_extrapolates_linearly():
    trans = (
        make_tx("i", 1900, "income", "salary", "2026-10-01"),
        make_tx("e", 190, day="2026-10-15"),
        make_tx("old", 999, day="2026-09-15"),
    )
    result = monthly_projection(trans, TODAY)
    assert result["days"] == {"passed": 19, "remaining": 12, "total": 31}
    assert result["averages"] == {"daily_income": 100, "daily_expense": 10}
    assert result["current"]["balance"] == 1710
    assert result["projected"]["income"] == pytest.approx(3100)
    assert result["projected"]["expenses"] == pytest.approx(310)
