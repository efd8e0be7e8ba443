import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date

import streamlit as st

from app.charts import amortization_figure, category_pie, growth_figure, transactions_frame, trend_figure
from tracker import projection
from tracker.catalog import BudgetBook, CategoryCatalog
from tracker.domain import PaymentMethod, TransactionType
from tracker.events import DATA_CHANGED
from tracker.filters import FilterCriteria
from tracker.persistence import JsonFileKeyValueStore
from tracker.services import ReportService
from tracker.settings import get_settings
from tracker.storage import Storage
from tracker.transactions import TransactionStore
from tracker.utils import get_logger

settings = get_settings()
logger = get_logger("dashboard", settings.log_level)

st.set_page_config(page_title="Finance Tracker", layout="wide")


@st.cache_resource
def open_store() -> TransactionStore:
    storage = Storage(JsonFileKeyValueStore(settings.storage_dir, settings.storage_quota_bytes), settings)
    storage.initialize()
    store = TransactionStore(storage)
    if not len(store) and settings.seed_file.exists():
        store.import_payload(settings.seed_file.read_text(encoding="utf-8")).map(
            lambda report: logger.info("Seeded %d transactions", report.imported_count)
        )
    store.subscribe(DATA_CHANGED, lambda event, payload: logger.info("Data changed: %s", payload))
    return store


store = open_store()
reports = ReportService(store)
catalog = CategoryCatalog(store.storage)
budgets = BudgetBook(store.storage)
names = {c.id: c.name for c in catalog.list()}
currency = (store.storage.snapshot()["settings"] or {}).get("currency", "USD")


def money(value: float) -> str:
    return f"{value:,.2f} {currency}"


def show_errors(error) -> None:
    for field, message in getattr(error, "errors", {"error": str(error)}).items():
        st.error(f"{field}: {message}")


menu = st.sidebar.radio("Menu", ["🏠 Overview", "🧾 Transactions", "💰 Budgets", "📊 Analytics", "🧮 Planner", "📂 Data"])

if menu == "🏠 Overview":
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Balance", money(reports.balance()))
    k2.metric("Income", money(reports.total_income()))
    k3.metric("Expenses", money(reports.total_expense()))
    health = reports.financial_health_score()
    k4.metric("Health score", f"{health['score']} ({health['grade']})")
    for line in health["feedback"]:
        st.caption(line)

    st.plotly_chart(trend_figure(reports.monthly_trends(12)), use_container_width=True)

    proj = reports.monthly_projection()
    c1, c2 = st.columns(2)
    c1.metric("Projected income", money(proj["projected"]["income"]))
    c2.metric("Projected expenses", money(proj["projected"]["expenses"]))

    recent = transactions_frame(store.get_recent(8))
    st.subheader("Recent transactions")
    st.table(recent.assign(date=recent["date"].dt.strftime("%Y-%m-%d")))

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")

    with st.form("input_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            description = st.text_input("Description")
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
            tx_type = st.selectbox("Type", [t.value for t in TransactionType])
        with col2:
            category = st.selectbox("Category", list(names), format_func=lambda c: names[c])
            day = st.date_input("Date", value=date.today())
            method = st.selectbox("Payment method", [m.value for m in PaymentMethod])
        notes = st.text_area("Notes")
        if st.form_submit_button("Add Transaction"):
            store.add({
                "description": description,
                "amount": amount,
                "type": tx_type,
                "category": category,
                "date": day,
                "payment_method": method,
                "notes": notes,
            }).fold(show_errors, lambda t: st.success(f"Added {t.description}"))

    query = st.text_input("Search")
    selected = st.multiselect("Categories", list(names), format_func=lambda c: names[c])
    shown = store.search(query, FilterCriteria(categories=selected))
    st.dataframe(transactions_frame(shown), use_container_width=True)

    to_delete = st.selectbox("Delete transaction", [""] + [t.id for t in shown])
    if to_delete and st.button("Delete"):
        store.delete(to_delete).fold(show_errors, lambda id: st.success(f"Deleted {id}"))

elif menu == "💰 Budgets":
    st.title("💰 Budgets")
    today = date.today()
    with st.form("budget_form"):
        category = st.selectbox("Category", list(names), format_func=lambda c: names[c])
        amount = st.number_input("Monthly limit", min_value=0.0, step=10.0)
        if st.form_submit_button("Save budget"):
            budgets.set({"category": category, "amount": amount, "month": today.month, "year": today.year}).fold(
                show_errors, lambda b: st.success("Budget saved")
            )

    for row in reports.budget_report(budgets.for_month(today.month, today.year)):
        b = row["budget"]
        st.write(f"**{names.get(b.category, b.category)}** {money(row['spent'])} / {money(b.amount)}")
        st.progress(row["utilization"] / 100)
        if row["is_over_budget"]:
            st.warning("Over budget")

elif menu == "📊 Analytics":
    st.title("📊 Analytics")
    st.plotly_chart(category_pie(reports.expense_ratios(), names), use_container_width=True)

    growth = reports.year_over_year_growth()
    c1, c2 = st.columns(2)
    c1.metric("Income growth", f"{growth['income']['growth']:.1f}%")
    c2.metric("Expense growth", f"{growth['expenses']['growth']:.1f}%")

    report = reports.monthly_report(date.today().month, date.today().year)
    st.subheader(f"Report {report['month']}")
    for step in report["steps"]:
        st.write(step["calculator"], step["output"])

elif menu == "🧮 Planner":
    st.title("🧮 Planner")
    tab_interest, tab_loan, tab_retire = st.tabs(["Compound interest", "Loan", "Retirement"])
    with tab_interest:
        principal = st.number_input("Principal", value=1000.0)
        rate = st.number_input("Annual rate %", value=5.0)
        years = st.number_input("Years", value=10, step=1)
        result = projection.compound_interest(principal, rate, int(years))
        st.metric("Final amount", money(result["amount"]))
        st.plotly_chart(growth_figure(result["breakdown"], "year", "amount", "Growth"), use_container_width=True)
    with tab_loan:
        principal = st.number_input("Loan amount", value=20000.0)
        rate = st.number_input("Loan rate %", value=6.0)
        years = st.number_input("Term (years)", value=5, step=1)
        loan = projection.loan_amortization(principal, rate, int(years))
        st.metric("Monthly payment", money(loan["monthly_payment"]))
        st.plotly_chart(amortization_figure(loan), use_container_width=True)
    with tab_retire:
        age = st.number_input("Current age", value=30, step=1)
        retire = st.number_input("Retirement age", value=65, step=1)
        savings = st.number_input("Current savings", value=10000.0)
        monthly = st.number_input("Monthly contribution", value=500.0)
        ret = st.number_input("Expected return %", value=7.0)
        plan = projection.retirement_projection(int(age), int(retire), savings, monthly, ret)
        st.metric("At retirement", money(plan["final_amount"]))
        st.plotly_chart(growth_figure(plan["projection"], "age", "total", "Savings"), use_container_width=True)

elif menu == "📂 Data":
    st.title("📂 Data")
    fmt = st.radio("Export format", ["json", "csv"], horizontal=True)
    store.export(fmt).fold(
        show_errors,
        lambda content: st.download_button("⬇ Download", content, file_name=f"transactions.{fmt}"),
    )

    upload = st.file_uploader("Import JSON or CSV")
    merge = st.checkbox("Skip duplicates", value=True)
    if upload is not None and st.button("Import"):
        result = store.import_payload(upload.getvalue().decode("utf-8"), merge=merge)
        if result.is_left():
            show_errors(result.get_error())
        else:
            report = result.value
            st.success(f"Imported {report.imported_count}, skipped {report.skipped_count}")
            for line in report.errors:
                st.warning(line)

    if st.button("Create backup"):
        store.storage.backup().fold(show_errors, lambda info: st.success(f"Backup {info['timestamp']}"))
    backups = store.storage.list_backups()
    if backups:
        chosen = st.selectbox("Restore backup", [b["date"] for b in backups])
        if st.button("Restore"):
            doc = next(b["data"] for b in backups if b["date"] == chosen)
            store.restore(doc).fold(show_errors, lambda ts: st.success(f"Restored {ts}"))
    st.json(store.storage.statistics())
