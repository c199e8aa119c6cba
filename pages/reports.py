from datetime import datetime

import pandas as pd
import streamlit as st

import auth
import pay_equity_data
from pay_equity_data import DataAccessError

FINAL_STATUSES = ['In Compliance', 'Out of Compliance']
OPEN_STATUSES = ['Private', 'Shared']


def format_timestamp(ts):
    """Format timestamp for display"""
    if ts is None:
        return "N/A"
    return pd.to_datetime(ts).strftime("%Y-%m-%d %H:%M")


def render_reports():
    """List, create and select reports for the active jurisdiction"""
    jurisdiction = st.session_state.get('active_jurisdiction')
    if jurisdiction is None:
        st.warning("Select a jurisdiction first.")
        return

    user_email = st.session_state.user_profile.get('email')
    is_admin = auth.is_admin(st.session_state.user_profile)
    st.subheader(f"Reports for {jurisdiction['name']}")

    try:
        reports = pay_equity_data.get_reports(jurisdiction['id'])
    except DataAccessError as e:
        st.error(str(e))
        return

    with st.expander("Create New Report", expanded=not reports):
        with st.form("new_report_form"):
            year = st.number_input("Report Year", min_value=2000, max_value=2100,
                                   value=jurisdiction.get('next_report_year') or datetime.now().year, step=1)
            description = st.text_input("Case Description")
            if st.form_submit_button("Create Report", type="primary"):
                try:
                    report = pay_equity_data.create_report(jurisdiction['id'], int(year), description, user_email)
                    st.session_state.active_report = report
                    st.success(f"Created {report['report_year']} case {report['case_number']}")
                    st.rerun()
                except DataAccessError as e:
                    st.error(str(e))

    if not reports:
        st.info("No reports have been created for this jurisdiction.")
        return

    df = pd.DataFrame([{
        'Year': r['report_year'],
        'Case': r['case_number'],
        'Description': r.get('case_description') or '',
        'Status': r['case_status'],
        'Compliance': r.get('compliance_status') or '',
        'Submitted': format_timestamp(r.get('submitted_at')),
    } for r in reports])
    st.dataframe(df, hide_index=True, use_container_width=True)

    active = st.session_state.get('active_report')
    by_id = {r['id']: r for r in reports}
    ids = list(by_id)
    selected = st.selectbox(
        "Active report",
        ids,
        index=ids.index(active['id']) if active and active['id'] in by_id else 0,
        format_func=lambda pk: f"{by_id[pk]['report_year']} Case {by_id[pk]['case_number']} "
                               f"({by_id[pk]['case_status']})",
    )
    report = by_id[selected]

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("Open Jobs", type="primary", use_container_width=True):
            st.session_state.active_report = report
            st.session_state.view = 'jobs'
            st.rerun()
    with col2:
        if st.button("Implementation & Submit", use_container_width=True):
            st.session_state.active_report = report
            st.session_state.view = 'implementation'
            st.rerun()
    with col3:
        if active is None or active['id'] != report['id']:
            if st.button("Set Active", use_container_width=True):
                st.session_state.active_report = report
                st.rerun()

    _render_status_controls(report, is_admin, user_email)


def _render_status_controls(report, is_admin, user_email):
    status = report['case_status']
    new_status = None

    if status in OPEN_STATUSES:
        shared = st.toggle("Share with administrators", value=status == 'Shared')
        wanted = 'Shared' if shared else 'Private'
        if wanted != status:
            new_status = wanted
    elif is_admin:
        st.markdown("#### Final Case Status")
        choice = st.radio("Set case status", ['Submitted'] + FINAL_STATUSES,
                          index=(['Submitted'] + FINAL_STATUSES).index(status), horizontal=True)
        if choice != status and st.button("Update Status"):
            new_status = choice
    else:
        st.info(f"This report is {status.lower()} and can no longer be edited.")

    if new_status:
        try:
            updated = pay_equity_data.update_report(report, {'case_status': new_status}, user_email)
            if st.session_state.get('active_report') and st.session_state.active_report['id'] == report['id']:
                st.session_state.active_report = updated
            st.success(f"Report status updated to {new_status}")
            st.rerun()
        except DataAccessError as e:
            st.error(str(e))
