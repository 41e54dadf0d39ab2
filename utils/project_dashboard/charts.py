# utils/project_dashboard/charts.py
"""
Altair Chart Builders for the Project Dashboards

- KPI tiles (st.metric) with YoY deltas
- Project value / profit by FY (grouped bars)
- Pipeline by stage
- SLA indicator mix (donut) and overdue table

Builders take the response dict produced by ProjectDashboard.build().
"""

import logging
from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from .constants import COLORS, CHART_HEIGHT, PIE_CHART_HEIGHT, STATUS_INDICATOR_ORDER

logger = logging.getLogger(__name__)


def format_inr(value: Optional[float]) -> str:
    """Indian-style short currency: ₹1.25 Cr, ₹4.50 L, ₹12,000."""
    if value is None:
        return "N/A"
    amount = float(value)
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    if amount >= 1e7:
        return f"{sign}₹{amount / 1e7:.2f} Cr"
    if amount >= 1e5:
        return f"{sign}₹{amount / 1e5:.2f} L"
    return f"{sign}₹{amount:,.0f}"


def yoy_delta(growth: Optional[float]) -> Optional[str]:
    """st.metric delta text; None hides the delta (N/A growth)."""
    if growth is None:
        return None
    return f"{growth:+.1f}% YoY"


class ProjectCharts:
    """
    Chart builders for the project dashboards.

    All methods are static.

    Usage:
        ProjectCharts.render_kpi_cards(payload)
        chart = ProjectCharts.build_fy_series_chart(payload['projectValueProfitByFY'])
        st.altair_chart(chart, use_container_width=True)
    """

    # =========================================================================
    # KPI CARDS
    # =========================================================================

    @staticmethod
    def render_kpi_cards(payload: Dict):
        """Revenue / Pipeline / Capacity / Profit tiles with YoY deltas."""
        yoy = payload.get('yoy') or {}
        same_period = payload.get('previousYearSamePeriod')

        with st.container(border=True):
            st.markdown("**☀️ PROJECT KPIs**")
            col1, col2, col3, col4, col5 = st.columns(5)

            with col1:
                st.metric(
                    label="Revenue",
                    value=format_inr(payload['totalRevenue']),
                    delta=yoy_delta(yoy.get('totalRevenue')),
                    help="Order value of confirmed, installing and completed projects"
                )
            with col2:
                st.metric(
                    label="Pipeline",
                    value=format_inr(payload['totalPipeline']),
                    delta=yoy_delta(yoy.get('totalPipeline')),
                    help="Order value of every project that is not LOST"
                )
            with col3:
                st.metric(
                    label="Open Pipeline",
                    value=format_inr(payload['openPipeline']),
                    help="Order value of LEAD, SITE_SURVEY and PROPOSAL projects"
                )
            with col4:
                st.metric(
                    label="Capacity",
                    value=f"{payload['totalCapacity']:,.1f} kW",
                    delta=yoy_delta(yoy.get('totalCapacity')),
                )
            with col5:
                st.metric(
                    label="Gross Profit",
                    value=format_inr(payload['totalProfit']),
                    delta=yoy_delta(yoy.get('totalProfit')),
                )

            if payload.get('previousFY'):
                basis = "same period" if same_period else "full year"
                st.caption(f"YoY vs {payload['previousFY']} ({basis})")

    # =========================================================================
    # FY SERIES
    # =========================================================================

    @staticmethod
    def build_fy_series_chart(fy_rows: List[Dict], title: str = "Project Value & Profit by FY") -> alt.Chart:
        """Grouped bars of project value, profit and pipeline per FY."""
        if not fy_rows:
            return ProjectCharts._empty_chart("No data available")

        df = pd.DataFrame(fy_rows)
        long_df = df.melt(
            id_vars=['fy'],
            value_vars=['totalProjectValue', 'totalProfit', 'totalPipeline'],
            var_name='Metric',
            value_name='Amount',
        )
        long_df['Metric'] = long_df['Metric'].map({
            'totalProjectValue': 'Project Value',
            'totalProfit': 'Profit',
            'totalPipeline': 'Pipeline',
        })

        return alt.Chart(long_df).mark_bar().encode(
            x=alt.X('fy:N', title='Financial Year', sort='ascending'),
            y=alt.Y('Amount:Q', title='Amount (₹)', axis=alt.Axis(format='~s')),
            color=alt.Color('Metric:N', scale=alt.Scale(
                domain=['Project Value', 'Profit', 'Pipeline'],
                range=[COLORS['revenue'], COLORS['profit'], COLORS['pipeline']]
            ), legend=alt.Legend(orient='bottom')),
            xOffset='Metric:N',
            tooltip=[
                alt.Tooltip('fy:N', title='FY'),
                alt.Tooltip('Metric:N'),
                alt.Tooltip('Amount:Q', format=',.0f'),
            ]
        ).properties(
            height=CHART_HEIGHT,
            title=title
        )

    # =========================================================================
    # PIPELINE BY STAGE
    # =========================================================================

    @staticmethod
    def build_stage_chart(stage_rows: List[Dict]) -> alt.Chart:
        if not stage_rows:
            return ProjectCharts._empty_chart("No staged projects")

        df = pd.DataFrame(stage_rows)
        stage_order = df['stage'].tolist()

        bars = alt.Chart(df).mark_bar(color=COLORS['pipeline']).encode(
            x=alt.X('stage:N', sort=stage_order, title='Stage'),
            y=alt.Y('value:Q', title='Order Value (₹)', axis=alt.Axis(format='~s')),
            tooltip=[
                alt.Tooltip('stage:N', title='Stage'),
                alt.Tooltip('count:Q', title='Projects'),
                alt.Tooltip('value:Q', title='Value', format=',.0f'),
            ]
        )
        text = alt.Chart(df).mark_text(dy=-8, fontSize=11).encode(
            x=alt.X('stage:N', sort=stage_order),
            y='value:Q',
            text='count:Q',
        )
        return alt.layer(bars, text).properties(height=CHART_HEIGHT, title="Pipeline by Stage")

    # =========================================================================
    # SLA
    # =========================================================================

    @staticmethod
    def build_sla_donut(by_status: Dict[str, int]) -> alt.Chart:
        """Donut of GREEN / AMBER / RED counts."""
        df = pd.DataFrame({
            'indicator': STATUS_INDICATOR_ORDER,
            'count': [int(by_status.get(s, 0)) for s in STATUS_INDICATOR_ORDER],
        })
        if df['count'].sum() == 0:
            return ProjectCharts._empty_chart("No projects under SLA")

        return alt.Chart(df).mark_arc(innerRadius=60).encode(
            theta=alt.Theta('count:Q'),
            color=alt.Color('indicator:N', scale=alt.Scale(
                domain=STATUS_INDICATOR_ORDER,
                range=[COLORS[s] for s in STATUS_INDICATOR_ORDER]
            ), legend=alt.Legend(title='SLA')),
            tooltip=[alt.Tooltip('indicator:N', title='Status'), alt.Tooltip('count:Q', title='Projects')]
        ).properties(height=PIE_CHART_HEIGHT, title="SLA Status")

    @staticmethod
    def render_overdue_table(overdue: List[Dict]):
        if not overdue:
            st.success("No projects over their stage SLA")
            return

        df = pd.DataFrame(overdue)
        st.dataframe(
            df,
            hide_index=True,
            use_container_width=True,
            column_config={
                'id': 'Project',
                'customer_name': 'Customer',
                'stage': 'Stage',
                'days_in_stage': st.column_config.NumberColumn('Days in Stage'),
                'days_remaining': st.column_config.NumberColumn('Days Left'),
                'sla_percentage': st.column_config.NumberColumn('SLA Used', format="%.1f%%"),
                'owner': 'Owner',
            }
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _empty_chart(message: str = "No data available") -> alt.Chart:
        """Create an empty chart with a message."""
        return alt.Chart(pd.DataFrame({'note': [message]})).mark_text(
            text=message,
            fontSize=16,
            color=COLORS['text_light']
        ).properties(height=200)
