from app.charts import amortization_figure, category_pie, transactions_frame, trend_figure
from conftest import TODAY, make_tx
from tracker.aggregation import expense_ratios, monthly_trends
from tracker.projection import loan_amortization


def test_transactions_frame_columns():
    df = transactions_frame((make_tx("a", 10), make_tx("b", 25, "income", "salary")))
    assert list(df.columns) == ["date", "description", "type", "category", "amount", "signed", "payment_method"]
    assert df["signed"].tolist() == [-10, 25]


def test_empty_frame_keeps_columns():
    df = transactions_frame(())
    assert df.empty
    assert "amount" in df.columns


def test_trend_figure_has_income_and_expense():
    fig = trend_figure(monthly_trends((make_tx("a", 10),), 3, TODAY))
    assert [t.name for t in fig.data] == ["Income", "Expense"]
    assert list(fig.data[0].x) == ["Aug 26", "Sep 26", "Oct 26"]


def test_category_pie_uses_display_names():
    ratios = expense_ratios((make_tx("a", 10, category="food"), make_tx("b", 30, category="housing")))
    fig = category_pie(ratios, {"food": "Food & Dining"})
    assert set(fig.data[0].labels) == {"Food & Dining", "housing"}


def test_amortization_figure():
    assert len(amortization_figure(loan_amortization(1200, 5, 1)).data) == 3
    assert len(amortization_figure(loan_amortization(1200, 5, 0)).data) == 0
