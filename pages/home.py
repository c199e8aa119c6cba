import streamlit as st

import auth
import pay_equity_data
from components.jurisdiction_info import display_jurisdiction_info, display_status_legend
from pay_equity_data import DataAccessError


def render_home():
    """Landing page: choose the active jurisdiction and show its details"""
    profile = st.session_state.user_profile
    st.subheader("Home")

    try:
        if auth.is_admin(profile):
            _select_jurisdiction()
        elif st.session_state.get('active_jurisdiction') is None and profile.get('jurisdiction_id'):
            st.session_state.active_jurisdiction = pay_equity_data.get_jurisdiction(profile['jurisdiction_id'])

        jurisdiction = st.session_state.get('active_jurisdiction')
        if jurisdiction is None:
            st.info("Select a jurisdiction to get started.")
            return

        col1, col2 = st.columns([7, 3])
        with col1:
            display_jurisdiction_info(jurisdiction, pay_equity_data.get_contacts(jurisdiction['id']))
        with col2:
            display_status_legend()
            reports = pay_equity_data.get_reports(jurisdiction['id'])
            st.markdown("### Recent Reports")
            if not reports:
                st.info("No reports yet")
            for report in reports[:5]:
                st.markdown(f"**{report['report_year']}** Case {report['case_number']}: {report['case_status']}")
            if st.button("Open Reports", use_container_width=True):
                st.session_state.view = 'reports'
                st.rerun()
    except DataAccessError as e:
        st.error(str(e))


def _select_jurisdiction():
    jurisdictions = pay_equity_data.get_jurisdictions()
    if not jurisdictions:
        st.warning("No jurisdictions available.")
        return

    active = st.session_state.get('active_jurisdiction')
    ids = [None] + [j['id'] for j in jurisdictions]
    by_id = {j['id']: j for j in jurisdictions}
    index = ids.index(active['id']) if active and active['id'] in by_id else 0

    selected = st.selectbox(
        "Active jurisdiction",
        ids,
        index=index,
        format_func=lambda pk: "Select a jurisdiction..." if pk is None
        else f"{by_id[pk]['name']} ({by_id[pk]['jurisdiction_id']})",
    )
    if (selected or None) != (active['id'] if active else None):
        st.session_state.active_jurisdiction = by_id.get(selected)
        st.session_state.active_report = None
        st.rerun()
