import pandas as pd
import streamlit as st

import jurisdiction_approval
from components.status_badges import approval_badge
from jurisdiction_approval import ApprovalError, STATUS_FILTERS
from pay_equity_data import DataAccessError


def format_timestamp(ts):
    if ts is None:
        return "N/A"
    return pd.to_datetime(ts).strftime("%Y-%m-%d %H:%M")


def render_jurisdiction_approval():
    """Admin review of jurisdiction registrations"""
    st.subheader("Jurisdiction Approval")
    admin_email = st.session_state.user_profile.get('email')

    if st.session_state.get('approval_message'):
        st.success(st.session_state.pop('approval_message'))

    try:
        items = jurisdiction_approval.load_jurisdictions_with_details()
    except DataAccessError as e:
        st.error(str(e))
        return

    counts = jurisdiction_approval.status_counts(items)
    col1, col2, col3 = st.columns(3)
    col1.metric("Pending", counts['pending'])
    col2.metric("Approved", counts['approved'])
    col3.metric("Rejected", counts['rejected'])

    col1, col2 = st.columns([1, 2])
    with col1:
        status_filter = st.selectbox("Status", STATUS_FILTERS, index=STATUS_FILTERS.index('pending'),
                                     format_func=str.title)
    with col2:
        search_term = st.text_input("Search by name, Jurisdiction ID or contact", "")

    filtered = jurisdiction_approval.filter_jurisdictions(items, status_filter, search_term)
    if not filtered:
        st.info("No jurisdictions match the current filters.")
        return

    for item in filtered:
        _render_item(item, admin_email)


def _render_item(item, admin_email):
    jurisdiction = item['jurisdiction']
    contact = item['contact'] or {}
    key = jurisdiction['id']

    with st.expander(f"{jurisdiction['name']} ({jurisdiction['jurisdiction_id']})"):
        st.markdown(approval_badge(jurisdiction.get('approval_status')), unsafe_allow_html=True)
        col1, col2 = st.columns(2)
        with col1:
            st.markdown(f"**Type:** {jurisdiction.get('jurisdiction_type') or 'N/A'}")
            st.markdown(f"**City:** {jurisdiction.get('city') or 'N/A'}")
            st.markdown(f"**Registered:** {format_timestamp(jurisdiction.get('created_at'))}")
        with col2:
            st.markdown(f"**Primary Contact:** {contact.get('name') or 'None on file'}")
            st.markdown(f"**Email:** {contact.get('email') or 'N/A'}")
            st.markdown(f"**Phone:** {contact.get('phone') or 'N/A'}")

        if jurisdiction.get('rejection_reason'):
            st.error(f"Rejection reason: {jurisdiction['rejection_reason']}")

        notes = st.text_area("Notes", key=f"notes_{key}")
        reason = st.text_input("Rejection reason", key=f"reason_{key}")

        col1, col2 = st.columns(2)
        with col1:
            if st.button("Approve", key=f"approve_{key}", type="primary",
                         disabled=jurisdiction.get('approval_status') == 'approved'):
                _apply(jurisdiction_approval.approve_jurisdiction, item, admin_email, notes=notes)
        with col2:
            if st.button("Reject", key=f"reject_{key}",
                         disabled=jurisdiction.get('approval_status') == 'rejected'):
                _apply(jurisdiction_approval.reject_jurisdiction, item, admin_email,
                       rejection_reason=reason, notes=notes)

        if item['history']:
            st.markdown("**Status History**")
            for record in item['history']:
                line = (f"{format_timestamp(record.get('created_at'))}: "
                        f"{jurisdiction_approval.describe_transition(record)} "
                        f"by {record.get('changed_by') or 'system'}")
                if record.get('reason'):
                    line += f" | Reason: {record['reason']}"
                if record.get('notes'):
                    line += f" | Notes: {record['notes']}"
                st.caption(line)


def _apply(action, item, admin_email, **kwargs):
    try:
        st.session_state.approval_message = action(item, admin_email, **kwargs)
        st.rerun()
    except (ApprovalError, DataAccessError) as e:
        st.error(str(e))
