"""
Storefront Insights Dashboard

A Streamlit dashboard over the reporting engine.
Run with: streamlit run app.py
"""

import sys
from pathlib import Path
from datetime import datetime, timezone

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from storefront_insights.clients import StorefrontExportClient
from storefront_insights.config import get_settings
from storefront_insights.core import (
    ChangeSignal,
    JsonFileBackend,
    ReadStateError,
    ReadStateStore,
    ReportingPipeline,
    UnreadCountConsumer,
    filter_feed,
    format_relative_time,
)
from storefront_insights.utils import setup_logger

PERIODS = {"7d": "Last 7 days", "30d": "Last 30 days", "3m": "Last 3 months", "12m": "Last 12 months"}
SEVERITY_ICON = {"error": "🔴", "warning": "🟡", "info": "🔵"}

settings = get_settings()

# Page config
st.set_page_config(
    page_title=settings.app_name,
    page_icon="🛍️",
    layout="wide",
)


@st.cache_resource
def get_pipeline() -> ReportingPipeline:
    """One pipeline and read-state store per server process, shared by all sessions."""
    setup_logger(settings)
    store = ReadStateStore(JsonFileBackend(settings.state_dir), ChangeSignal())
    return ReportingPipeline(StorefrontExportClient(settings.data_dir), store, settings)


def bucket_label(key: str, granularity: str) -> str:
    """'2024-10-19' -> '19 Oct', '2024-10' -> 'Oct 2024'."""
    if granularity == "day":
        return pd.Timestamp(key).strftime("%d %b")
    return pd.Timestamp(f"{key}-01").strftime("%b %Y")


pipeline = get_pipeline()

# The session owns its consumer; the shared signal only holds it weakly
if "unread" not in st.session_state:
    st.session_state.unread = UnreadCountConsumer(
        pipeline.store,
        pipeline.latest_notifications,
        poll_interval=settings.poll_interval_seconds,
    ).start()
consumer: UnreadCountConsumer = st.session_state.unread

st.title(f"🛍️ {settings.app_name}")

period = st.selectbox(
    "Period",
    list(PERIODS),
    index=list(PERIODS).index(settings.default_period) if settings.default_period in PERIODS else 3,
    format_func=PERIODS.get,
)

with st.spinner("Loading data..."):
    outcome = pipeline.run(period)

if outcome.error:
    st.error(f"Could not refresh data: {outcome.error}")
    if outcome.stale:
        st.caption("Showing the last successfully computed report.")

report = outcome.result
if report is None:
    st.stop()

consumer.refresh()


@st.fragment(run_every=settings.poll_interval_seconds)
def unread_badge():
    consumer.poll()
    label = consumer.badge or "0"
    st.metric("Unread notifications", label)


# --- Key Metrics Row ---
st.header("Key Metrics")
col1, col2, col3, col4 = st.columns(4)

with col1:
    st.metric(
        "Revenue",
        f"{report.stats.total_revenue:,.2f}",
        delta=f"{report.stats.eligible_orders} paid orders",
        delta_color="off",
    )

with col2:
    st.metric("Orders in period", f"{report.stats.orders_in_range:,}")

with col3:
    st.metric(
        "Stock alerts",
        f"{report.inventory.low_stock + report.inventory.out_of_stock}",
        delta=f"{report.inventory.out_of_stock} out, {report.inventory.low_stock} low",
        delta_color="inverse",
    )

with col4:
    unread_badge()

st.divider()

# --- Revenue ---
st.subheader("📈 Revenue")
revenue_df = report.revenue.to_frame()
revenue_df["label"] = revenue_df["key"].apply(lambda k: bucket_label(k, report.revenue.granularity))

fig_revenue = go.Figure(
    data=[go.Bar(x=revenue_df["label"], y=revenue_df["revenue"], marker_color="#3498db")]
)
fig_revenue.update_layout(height=320, margin=dict(t=20, b=20, l=20, r=20))
st.plotly_chart(fig_revenue, use_container_width=True)

# --- Two Column Layout ---
left_col, right_col = st.columns([2, 1])

with left_col:
    st.subheader("🏆 Top Products")
    if report.top_products:
        products_df = pd.DataFrame(
            [
                {"Product": p.name, "Units": p.sales, "Revenue": p.revenue}
                for p in report.top_products
            ]
        )
        st.dataframe(
            products_df,
            use_container_width=True,
            hide_index=True,
            column_config={
                "Units": st.column_config.NumberColumn(format="%d"),
                "Revenue": st.column_config.NumberColumn(format="%.2f"),
            },
        )
    else:
        st.info("No sales in this period")

with right_col:
    st.subheader("📊 Catalog by Category")
    if report.top_categories:
        fig_categories = go.Figure(
            data=[
                go.Pie(
                    labels=[c.name for c in report.top_categories],
                    values=[c.count for c in report.top_categories],
                    hole=0.4,
                )
            ]
        )
        fig_categories.update_layout(height=280, margin=dict(t=20, b=20, l=20, r=20))
        st.plotly_chart(fig_categories, use_container_width=True)
    else:
        st.info("No products in the catalog")

st.divider()

# --- Notifications ---
st.subheader("🔔 Notifications")
feed = pipeline.current_feed()

header_left, header_right = st.columns([3, 1])
with header_left:
    unread_only = st.toggle("Unread only", value=False)
with header_right:
    if st.button("Mark all as read", disabled=not filter_feed(feed, unread_only=True)):
        try:
            pipeline.mark_all_read()
        except ReadStateError as e:
            st.error(f"Could not save read state: {e}")
        else:
            st.rerun()

now = datetime.now(timezone.utc)
visible = filter_feed(feed, unread_only=unread_only)
if not visible:
    st.info("No notifications")

for entry in visible:
    n = entry.notification
    text_col, action_col = st.columns([5, 1])
    with text_col:
        weight = "" if entry.read else "**"
        st.markdown(
            f"{SEVERITY_ICON[n.severity]} {weight}{n.title}{weight}: {n.message} "
            f"· _{format_relative_time(n.timestamp, now)}_"
        )
    with action_col:
        if not entry.read and st.button("Mark read", key=f"read-{n.id}"):
            try:
                pipeline.store.mark_read(n.id)
            except ReadStateError as e:
                st.error(f"Could not save read state: {e}")
            else:
                st.rerun()

# --- Data Quality ---
if outcome.warnings:
    with st.expander("📋 Data quality warnings"):
        for warning in outcome.warnings:
            st.markdown(f"🟡 {warning}")

# --- Footer ---
st.divider()
st.caption(
    f"Snapshot v{report.snapshot_version} | Generated {report.generated_at:%Y-%m-%d %H:%M} UTC | "
    f"Products: {report.stats.product_count:,} | Units in stock: {report.inventory.total_units:,}"
)
