from contextlib import contextmanager
from datetime import date
from typing import Optional

import pandas as pd
import streamlit as st

from sales_core.config import configure_logging, load_settings
from sales_core.data import format_currency, load_dashboard_data, prepare_context
from sales_core.errors import FeedUnavailableError, InvalidFilterError
from sales_core.export import to_delimited_text
from sales_core.metrics_heatmap import compute_heatmap
from sales_core.metrics_overview import compute_overview
from sales_core.metrics_performance import compute_performance

ALL = "All"


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container(border=True)
    container.markdown(f"**{title}**")
    with container:
        yield container


def format_filter_summary(filters: dict) -> str:
    chips = [
        f"City: {filters['city'] or ALL}",
        f"Product: {filters['product'] or ALL}",
        f"Rep: {filters['sales_rep'] or ALL}",
        f"Dates: {filters['start_date'] or '…'} – {filters['end_date'] or '…'}",
    ]
    return "".join(f"<span class='chip'>{txt}</span>" for txt in chips)


def render_page_header(title: str, filter_summary_html: str, export_text: Optional[str] = None):
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>Home / {title}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_text is not None:
            st.download_button(
                "Export CSV",
                data=export_text.encode("utf-8"),
                file_name="transactions.csv",
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


@st.cache_data(ttl=300, show_spinner=False)
def _load_data():
    return load_dashboard_data(load_settings())


# ---------- UI setup ----------
settings = load_settings()
configure_logging(settings.log_level)
st.set_page_config(page_title="Sales Analytics Dashboard", layout="wide")
inject_base_styles()
st.title("Sales Analytics Dashboard")

try:
    data_ctx = _load_data()
except FeedUnavailableError as exc:
    st.error(f"Sales data failed to load: {exc}")
    st.stop()

if not data_ctx["records"]:
    st.warning("No sales data available.")
    st.stop()

if data_ctx["rejected"]:
    st.caption(f"{len(data_ctx['rejected'])} records were rejected during validation.")
if data_ctx["source"] == "synthetic":
    st.caption("Showing generated sample data.")

options = data_ctx["options"]

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    page = st.radio("Navigate", ["Overview", "Performance", "Heatmap"], index=0)

    st.markdown("---")
    st.markdown("### Filters")
    city = st.selectbox("City", [ALL] + options["cities"])
    product = st.selectbox("Product", [ALL] + options["products"])
    sales_rep = st.selectbox("Sales Rep", [ALL] + options["sales_reps"])
    min_date = date.fromisoformat(options["min_date"])
    max_date = date.fromisoformat(options["max_date"])
    picked = st.date_input("Date range", value=(min_date, max_date), min_value=min_date, max_value=max_date)

    st.markdown("---")
    with st.expander("Advanced settings", expanded=False):
        top_n = st.slider("Top N rows", min_value=1, max_value=20, value=settings.top_n)
        group_key = st.selectbox("Distribution by", ["product", "city", "sales_rep"])

start_date, end_date = (tuple(picked) + (None, None))[:2] if isinstance(picked, (tuple, list)) else (picked, picked)
raw_filters = {
    "city": None if city == ALL else city,
    "product": None if product == ALL else product,
    "sales_rep": None if sales_rep == ALL else sales_rep,
    "start_date": start_date,
    "end_date": end_date,
}

try:
    ctx = prepare_context(raw_filters, data_ctx)
except InvalidFilterError as exc:
    st.error(f"Invalid filter: {exc}")
    st.stop()

filters = ctx["filters"]
filter_summary_html = format_filter_summary(filters.to_dict())
export_text = to_delimited_text(ctx["filtered"], delimiter=settings.export_delimiter)


def render_overview_page():
    render_page_header("Overview", filter_summary_html, export_text)
    payload = compute_overview(filters, ctx, top_n=top_n, group_key=group_key)
    k = payload["kpis"]
    cols = st.columns(5)
    cols[0].metric("Total Sales", format_currency(k["total_sales"]))
    cols[1].metric("Units Sold", f"{k['total_quantity']:,}")
    cols[2].metric("Transactions", f"{k['transaction_count']:,}")
    cols[3].metric("Avg Order Value", format_currency(k["average_order_value"]))
    cols[4].metric("Cities", f"{k['distinct_cities']:,}")

    if payload["empty"]:
        st.info("No transactions match the selected filters.")
        return

    left, right = st.columns(2)
    with left:
        with card(f"Top {top_n} products by units"):
            st.dataframe(pd.DataFrame(payload["top_products"]), hide_index=True, use_container_width=True)
            st.vega_lite_chart(payload["charts"]["top_products"], use_container_width=True)
    with right:
        with card("Sales rep ranking"):
            st.dataframe(pd.DataFrame(payload["rep_ranking"]), hide_index=True, use_container_width=True)
            st.vega_lite_chart(payload["charts"]["rep_ranking"], use_container_width=True)
    with card(f"Sales distribution by {group_key.replace('_', ' ')}"):
        st.vega_lite_chart(payload["charts"]["distribution"], use_container_width=True)


def render_performance_page():
    render_page_header("Performance", filter_summary_html, export_text)
    c1, c2 = st.columns(2)
    metric = c1.radio("Metric", ["sales", "quantity"], horizontal=True)
    view = c2.radio("View", ["product", "city", "sales_rep"], horizontal=True)
    payload = compute_performance(filters, ctx, metric=metric, view=view, top_n=top_n)
    if not payload["top"]:
        st.info("No transactions match the selected filters.")
        return
    with card(f"Top {top_n} by {metric}"):
        st.dataframe(pd.DataFrame(payload["top"]), hide_index=True, use_container_width=True)
        st.vega_lite_chart(payload["charts"]["ranking"], use_container_width=True)


def render_heatmap_page():
    render_page_header("Heatmap", filter_summary_html, export_text)
    payload = compute_heatmap(filters, ctx)
    if not payload["rows"]:
        st.info("No transactions match the selected filters.")
        return
    with card("Sales by rep and month"):
        st.vega_lite_chart(payload["charts"]["heatmap"], use_container_width=True)
        table = pd.DataFrame(payload["values"], index=payload["rows"], columns=payload["periods"])
        st.dataframe(table, use_container_width=True)


if page == "Overview":
    render_overview_page()
elif page == "Performance":
    render_performance_page()
else:
    render_heatmap_page()
