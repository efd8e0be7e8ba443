import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

TEMPLATE = "plotly_dark"


def transactions_frame(trans) -> pd.DataFrame:
    rows = [
        {
            "date": pd.Timestamp(t.date),
            "description": t.description,
            "type": t.type.value,
            "category": t.category,
            "amount": t.amount,
            "signed": t.signed_amount,
            "payment_method": t.payment_method.value,
        }
        for t in trans
    ]
    columns = ["date", "description", "type", "category", "amount", "signed", "payment_method"]
    return pd.DataFrame(rows, columns=columns)


def trend_figure(trends: list[dict]) -> go.Figure:
    labels = [f"{m['month_name']} {str(m['year'])[2:]}" for m in trends]
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=labels, y=[m["income"] for m in trends], mode="lines+markers", name="Income"))
    fig.add_trace(go.Scatter(x=labels, y=[m["expense"] for m in trends], mode="lines+markers", name="Expense"))
    fig.update_layout(template=TEMPLATE, margin=dict(t=30, b=10, l=10, r=10))
    return fig


def category_pie(ratios: list[dict], names: dict[str, str] | None = None) -> go.Figure:
    names = names or {}
    df = pd.DataFrame(
        [{"Category": names.get(r["category"], r["category"]), "Total": r["amount"]} for r in ratios],
        columns=["Category", "Total"],
    )
    fig = px.pie(df, values="Total", names="Category", title="Expenses by Category")
    fig.update_layout(template=TEMPLATE, height=320)
    return fig


def amortization_figure(loan: dict) -> go.Figure:
    schedule = pd.DataFrame(loan["amortization"])
    fig = go.Figure()
    if not schedule.empty:
        fig.add_trace(go.Bar(x=schedule["month"], y=schedule["principal"], name="Principal"))
        fig.add_trace(go.Bar(x=schedule["month"], y=schedule["interest"], name="Interest"))
        fig.add_trace(go.Scatter(x=schedule["month"], y=schedule["remaining_balance"], name="Balance", yaxis="y2"))
    fig.update_layout(
        template=TEMPLATE,
        barmode="stack",
        yaxis2=dict(overlaying="y", side="right"),
        title="Loan amortization",
    )
    return fig


def growth_figure(rows: list[dict], x: str, y: str, title: str) -> go.Figure:
    df = pd.DataFrame(rows, columns=[x, y])
    fig = px.line(df, x=x, y=y, markers=True, title=title, template=TEMPLATE)
    return fig
