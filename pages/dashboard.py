from datetime import datetime

import pandas as pd
import streamlit as st

import jurisdiction_approval
import pay_equity_data
from components.charts import create_status_summary_chart
from pay_equity_data import DataAccessError


def format_timestamp(ts):
    """Format timestamp for display"""
    if ts is None:
        return "N/A"
    return pd.to_datetime(ts).strftime("%Y-%m-%d %H:%M:%S")


def render_dashboard():
    """Render the administrator dashboard"""
    st.subheader("Dashboard")

    try:
        jurisdictions = pay_equity_data.get_jurisdictions()
    except DataAccessError as e:
        st.error(str(e))
        return

    counts = jurisdiction_approval.status_counts([{'jurisdiction': j} for j in jurisdictions])

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Jurisdictions", len(jurisdictions))
    with col2:
        st.metric("Pending Approval", counts['pending'])
    with col3:
        st.metric("Approved", counts['approved'])
    with col4:
        st.metric("Rejected", counts['rejected'])

    if counts['pending'] and st.button("Review pending registrations"):
        st.session_state.view = 'jurisdiction_approval'
        st.rerun()

    st.header("Report Status")
    report_year = int(st.number_input("Report year", min_value=2000, max_value=2100,
                                      value=datetime.now().year, step=1))
    try:
        summary = pay_equity_data.get_report_status_summary(report_year)
    except DataAccessError as e:
        st.error(str(e))
        summary = []

    if summary:
        st.plotly_chart(create_status_summary_chart(summary), use_container_width=True)
    else:
        st.info(f"No reports for {report_year} yet")

    with st.expander("Recent Activity", expanded=True):
        try:
            logs = pay_equity_data.get_audit_logs(limit=50)
        except DataAccessError as e:
            st.error(str(e))
            return
        if logs:
            log_text = ""
            for log in logs:
                timestamp = format_timestamp(log['created_at'])
                log_text += (f"{timestamp} [{log['action_type'].upper()}] {log['table_name']} "
                             f"{log.get('record_id') or ''} by {log.get('user_email') or 'system'}\n")
            st.text_area("Audit Log", log_text, height=300)
        else:
            st.info("No activity recorded")
