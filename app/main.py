import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging

import numpy as np
import pandas as pd
import plotly.express as px
import streamlit as st

from bankinsight.analysis import analyze_spending_trends
from bankinsight.categories import DEFAULT_CATEGORIES
from bankinsight.config import DIALECTS, config_from_env
from bankinsight.errors import ConfigError
from bankinsight.importer import import_statement, validate_csv_structure
from bankinsight.insights import DAY_NAMES, spending_by_weekday
from bankinsight.services import InsightService
from bankinsight.transforms import add_transactions, load_snapshot

logging.basicConfig(level=os.getenv("BANKINSIGHT_LOG_LEVEL", "INFO"))
logger = logging.getLogger("bankinsight.app")

st.set_page_config(page_title="Bank Insight", layout="wide")

SNAPSHOT_PATH = os.getenv("BANKINSIGHT_SNAPSHOT", "data/snapshot.json")

if "transactions" not in st.session_state:
    if os.path.exists(SNAPSHOT_PATH):
        trans, cats, budgets = load_snapshot(SNAPSHOT_PATH)
    else:
        trans, cats, budgets = (), DEFAULT_CATEGORIES, ()
    st.session_state.transactions = trans
    st.session_state.categories = cats
    st.session_state.budgets = budgets


def tx_to_df(tx_list) -> pd.DataFrame:
    rows = [
        {
            "date": t.date,
            "description": t.description,
            "amount": float(t.amount) if t.is_credit else -float(t.amount),
            "direction": t.direction,
            "category": t.category_id or "-",
            "tags": ", ".join(t.tags),
            "recurring": t.recurring_frequency or ("yes" if t.is_recurring else ""),
        }
        for t in tx_list
    ]
    df = pd.DataFrame(rows, columns=["date", "description", "amount", "direction", "category", "tags", "recurring"])
    df["date"] = pd.to_datetime(df["date"], errors="coerce", utc=True)
    return df


menu = st.sidebar.radio("Menu", ["📥 Import", "💸 Transactions", "💡 Insights", "📊 Analysis"])

if menu == "📥 Import":
    st.title("📥 Import bank statement")
    dialect = st.selectbox("Dialect", options=list(DIALECTS), index=0)
    try:
        config = config_from_env(DIALECTS[dialect])
    except ConfigError as e:
        st.error(str(e))
        config = DIALECTS[dialect]

    uploaded = st.file_uploader("CSV export", type=["csv", "txt"])
    if uploaded is not None:
        try:
            text = uploaded.getvalue().decode(config.encoding)
        except UnicodeDecodeError as e:
            st.error(f"Cannot read file: {e}")
            st.stop()

        if config.has_header and not validate_csv_structure(text, config):
            st.warning("The header row does not match the expected columns for this bank.")

        result = import_statement(text, config)
        k1, k2, k3 = st.columns(3)
        k1.metric("Rows read", result.total_rows)
        k2.metric("Imported", result.imported_rows)
        k3.metric("Errors", len(result.errors))

        for w in result.warnings:
            st.warning(w)
        if result.errors:
            with st.expander(f"{len(result.errors)} rows skipped"):
                for e in result.errors:
                    st.text(e)

        st.dataframe(tx_to_df(result.transactions), use_container_width=True)
        if result.transactions and st.button("Add to transactions"):
            st.session_state.transactions = add_transactions(
                st.session_state.transactions, tuple(result.transactions)
            )
            st.success(f"Added {result.imported_rows} transactions.")

elif menu == "💸 Transactions":
    st.title("💸 Transactions")
    df = tx_to_df(st.session_state.transactions)
    if df.empty:
        st.info("No transactions to display.")
    else:
        disp = df.assign(date=df["date"].dt.strftime("%d-%m-%Y"))
        st.dataframe(disp, use_container_width=True)
        st.download_button("⬇ Download CSV", disp.to_csv(index=False), file_name="transactions.csv")

elif menu == "💡 Insights":
    st.title("💡 Insights")
    service = InsightService()
    insights = service.generate(
        st.session_state.transactions, st.session_state.categories, st.session_state.budgets
    )
    if not insights:
        st.info("No insights yet. Import a statement first.")
    icons = {"high": "🔴", "medium": "🟠", "low": "🟢"}
    for ins in insights:
        with st.container(border=True):
            st.markdown(f"{icons.get(ins.impact, '')} **{ins.title}**")
            st.write(ins.description)
            st.caption(f"{ins.insight_type} · confidence {ins.confidence_score:.0%}")
            for s in ins.action_suggestions:
                st.markdown(f"- {s}")

    by_day = spending_by_weekday(st.session_state.transactions)
    values = np.array([float(by_day.get(i, 0)) for i in range(7)])
    if values.sum() > 0:
        fig = px.bar(x=list(DAY_NAMES), y=values, labels={"x": "Day", "y": "Spending (€)"},
                     title="Spending by weekday", template="plotly_dark")
        st.plotly_chart(fig, use_container_width=True)

elif menu == "📊 Analysis":
    st.title("📊 Spending analysis")
    days = st.slider("Window (days)", min_value=7, max_value=365, value=30)
    analysis = analyze_spending_trends(
        st.session_state.transactions, days, st.session_state.categories
    )
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Income", f"€{analysis.total_income:,.2f}")
    k2.metric("Spending", f"€{analysis.total_spending:,.2f}")
    k3.metric("Net savings", f"€{analysis.net_savings:,.2f}")
    k4.metric("Per day", f"€{analysis.average_daily_spending:,.2f}", delta=analysis.spending_trend,
              delta_color="off")

    if analysis.top_categories:
        df_cat = pd.DataFrame([
            {"Category": c.category_name, "Total": float(c.amount), "Count": c.transaction_count,
             "Share": round(c.percentage, 1)}
            for c in analysis.top_categories
        ])
        fig_cat = px.pie(df_cat, values="Total", names="Category", title="Top categories")
        st.plotly_chart(fig_cat, use_container_width=True)
        st.table(df_cat)
