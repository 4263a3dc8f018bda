#!/usr/bin/env python3
"""
Token Pulse Dashboard - Streamlit App

Run with: streamlit run app.py
"""

from datetime import datetime, timezone

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from tokenpulse.analytics.filters import find_by_address
from tokenpulse.controller import DashboardController
from tokenpulse.core.config import get_config
from tokenpulse.core.types import ChartMetric, ChartMode
from tokenpulse.output.formatters import (
    TOKEN_COLUMNS,
    buyer_count,
    format_chart_axis,
    format_market_cap_usd,
    format_number,
    format_percent,
    format_usd,
    time_ago,
)

AUTOFUN_URL = "https://auto.fun"
ACCENT = "#00FF00"

# Page config
st.set_page_config(
    page_title="Token Pulse - auto.fun",
    page_icon="📈",
    layout="wide"
)

config = get_config()

# One controller per browser session; it owns tokens, sort and chart selection
if "controller" not in st.session_state:
    st.session_state.controller = DashboardController(config=config)
    with st.spinner("Loading tokens..."):
        st.session_state.controller.refresh()

controller: DashboardController = st.session_state.controller


def refresh_if_stale() -> None:
    """Refetch once the last attempt, failed or not, is older than the refresh interval."""
    last = controller.state.last_attempt or controller.state.last_updated
    if last is None:
        return
    age = (datetime.now(timezone.utc) - last).total_seconds()
    if age >= config.refresh_interval_seconds:
        with st.spinner("Refreshing tokens..."):
            controller.refresh()


refresh_if_stale()

# Sidebar - chart selection and refresh
st.sidebar.title("Token Pulse")
st.sidebar.markdown(f"[auto.fun]({AUTOFUN_URL})")
st.sidebar.markdown("---")

metric_options = list(ChartMetric)
selected_metric = st.sidebar.radio(
    "Chart",
    options=metric_options,
    index=metric_options.index(controller.state.metric),
    format_func=lambda m: m.display_name,
)
if selected_metric != controller.state.metric:
    controller.select_metric(selected_metric)

mode_options = list(ChartMode)
selected_mode = st.sidebar.radio(
    "Mode",
    options=mode_options,
    index=mode_options.index(controller.state.mode),
    format_func=lambda m: m.value.capitalize(),
    horizontal=True,
)
if selected_mode != controller.state.mode:
    controller.select_mode(selected_mode)

st.sidebar.markdown("---")
if st.sidebar.button("Refresh now"):
    with st.spinner("Refreshing tokens..."):
        controller.refresh()

state = controller.state
if state.last_updated:
    st.sidebar.caption(f"Updated {state.last_updated.strftime('%H:%M:%S UTC')}")
st.sidebar.caption(f"Total active tokens: {state.token_count}")

# ============================================================================
# SECTION 1: 24-HOUR CHART
# ============================================================================

st.header(f"{state.metric.display_name}")

series = controller.series()
points = series.points()

col_title, col_info = st.columns([4, 1])
with col_title:
    st.subheader(series.title)
with col_info:
    with st.popover("i"):
        st.markdown(state.metric.description)

fig = go.Figure()
fig.add_trace(go.Scatter(
    x=[label for label, _ in points],
    y=[value for _, value in points],
    mode="lines+markers",
    line=dict(color=ACCENT, width=2, shape="linear"),
    marker=dict(size=7, color=ACCENT, line=dict(color="#000", width=1)),
    customdata=[series.tooltip(value) for _, value in points],
    hovertemplate="%{x}: %{customdata}<extra></extra>",
))

# Five evenly spaced y ticks with metric-agnostic compact labels
peak = max(series.values) if series.values else 0
upper = peak * 1.05 if peak > 0 else 1
tick_values = [upper * i / 4 for i in range(5)]

fig.update_layout(
    height=320,
    margin=dict(l=18, r=18, t=20, b=20),
    showlegend=False,
    xaxis=dict(showgrid=False, nticks=12),
    yaxis=dict(
        range=[0, upper],
        tickvals=tick_values,
        ticktext=[format_chart_axis(v) for v in tick_values],
        gridcolor="rgba(0,255,0,0.07)",
    ),
)
st.plotly_chart(fig, use_container_width=True)

st.caption(f"Window total: {series.format_value(series.total)}")

st.markdown("---")

# ============================================================================
# SECTION 2: TOKEN TABLE
# ============================================================================

st.header("Active Tokens")

if state.error:
    st.error(state.error)

st.markdown(
    f"Listing all active tokens • {state.token_count} tokens • "
    f"Sorted by {state.sort.describe()}"
)

# Column headers act as sort toggles
header_cols = st.columns(len(TOKEN_COLUMNS))
for col, (key, header, _) in zip(header_cols, TOKEN_COLUMNS):
    with col:
        if st.button(f"{header}{state.sort.indicator(key)}", key=f"sort_{key}"):
            controller.sort_by(key)
            st.rerun()

rows = controller.sorted_tokens()
now = datetime.now(timezone.utc)

if not rows:
    st.info("No tokens match the current filters.")
else:
    table = pd.DataFrame([
        {
            "Image": t.image,
            "Token": t.name or "-",
            "Ticker": t.ticker or "-",
            "Volume": format_usd(t.volume_24h),
            "Market Cap": format_market_cap_usd(t.market_cap_usd),
            "Buyers": format_number(buyer_count(t)),
            "Liquidity %": format_percent(t.liquidity_percent),
            "Created": time_ago(t.created_at, now),
            "Link": f"{AUTOFUN_URL}/token/{t.address}",
        }
        for t in rows
    ])
    st.dataframe(
        table,
        use_container_width=True,
        hide_index=True,
        column_config={
            "Image": st.column_config.ImageColumn("", width="small"),
            "Link": st.column_config.LinkColumn("Contract", display_text="Open"),
        },
    )

st.markdown("---")

# ============================================================================
# SECTION 3: TOKEN DETAILS
# ============================================================================

st.header("Token Details")

if rows:
    selected_address = st.selectbox(
        "Select Token",
        options=[t.address for t in rows],
        format_func=lambda a: (
            f"{find_by_address(rows, a).name or '-'} ({find_by_address(rows, a).ticker or '-'})"
        ),
    )
    token = controller.token_by_address(selected_address)

    if token:
        col1, col2 = st.columns([1, 3])
        with col1:
            if token.image:
                st.image(token.image, width=96)
            st.markdown(f"**{token.name or '-'}**")
            st.caption(token.ticker or "")
        with col2:
            st.markdown("**Contract Address**")
            st.code(token.address, language=None)
            st.link_button("Go", f"{AUTOFUN_URL}/token/{token.address}")

        details = pd.DataFrame({
            "Field": ["Volume", "Market Cap", "Buyers", "Since", "Liq%"],
            "Value": [
                format_usd(token.volume_24h),
                format_usd(token.market_cap_usd),
                format_number(buyer_count(token)),
                time_ago(token.created_at, now),
                format_percent(token.liquidity_percent),
            ],
        })
        st.dataframe(details, use_container_width=True, hide_index=True)
else:
    st.info("No token selected")

st.markdown("---")
st.markdown(f"[auto.fun]({AUTOFUN_URL}) · Total active tokens: {state.token_count}")
