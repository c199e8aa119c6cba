from datetime import datetime

import pandas as pd
import streamlit as st

import email_service
import pay_equity_data
from email_service import EMAIL_TYPES
from pay_equity_data import DataAccessError

BULK_TYPES = ['announcement', 'fail_to_report']


def _prefill(email_type, report_year, draft=None):
    """Load subject, body and recipients from a draft or the type's template"""
    if draft:
        st.session_state.email_subject = draft.get('subject') or ''
        st.session_state.email_body = draft.get('body') or ''
        st.session_state.email_recipients = list(draft.get('selected_jurisdictions') or [])
        st.session_state.email_draft_id = draft['id']
    else:
        template = pay_equity_data.get_email_template(email_type) or {}
        st.session_state.email_subject = template.get('subject', '')
        st.session_state.email_body = template.get('body', '')
        st.session_state.email_draft_id = None
        if email_type == 'fail_to_report':
            st.session_state.email_recipients = [
                str(j['id']) for j in email_service.find_non_reporting_jurisdictions(report_year)]
        else:
            st.session_state.email_recipients = []
    st.session_state.email_prefill = (email_type, report_year)


def render_send_email():
    """Admin bulk mailing: announcements and failure to report notices"""
    st.subheader("Send Email")
    user_email = st.session_state.user_profile.get('email')

    col1, col2 = st.columns(2)
    with col1:
        email_type = st.selectbox("Email type", BULK_TYPES, format_func=EMAIL_TYPES.get)
    with col2:
        report_year = int(st.number_input("Report year", min_value=2000, max_value=2100,
                                          value=datetime.now().year, step=1))

    try:
        if st.session_state.get('email_prefill') != (email_type, report_year):
            _prefill(email_type, report_year)
        jurisdictions = [j for j in pay_equity_data.get_jurisdictions() if j.get('approval_status') == 'approved']
        drafts = pay_equity_data.get_email_drafts(email_type)
    except DataAccessError as e:
        st.error(str(e))
        return

    if drafts:
        with st.expander(f"Drafts ({len(drafts)})"):
            for draft in drafts:
                col1, col2, col3 = st.columns([4, 1, 1])
                col1.markdown(f"**{draft.get('subject') or '(no subject)'}** ({draft['report_year']})")
                if col2.button("Load", key=f"load_{draft['id']}"):
                    _prefill(email_type, report_year, draft)
                    st.rerun()
                if col3.button("Delete", key=f"delete_{draft['id']}"):
                    try:
                        pay_equity_data.delete_email_draft(draft['id'])
                        st.rerun()
                    except DataAccessError as e:
                        st.error(str(e))

    by_id = {str(j['id']): j for j in jurisdictions}
    st.session_state.email_recipients = [pk for pk in st.session_state.email_recipients if pk in by_id]
    recipients = st.multiselect(
        "Recipients", list(by_id), key='email_recipients',
        format_func=lambda pk: f"{by_id[pk]['name']} ({by_id[pk]['jurisdiction_id']})")
    subject = st.text_input("Subject", key='email_subject')
    body = st.text_area("Message", key='email_body', height=250,
                        help="Placeholders: {{contact_name}}, {{jurisdiction_name}}, "
                             "{{jurisdiction_id}}, {{report_year}}")

    col1, col2 = st.columns([1, 1])
    with col1:
        if st.button("Save Draft", use_container_width=True):
            try:
                draft = email_service.save_draft(email_type, report_year, subject, body, recipients,
                                                 user_email, st.session_state.get('email_draft_id'))
                st.session_state.email_draft_id = draft['id']
                st.success("Draft saved")
            except DataAccessError as e:
                st.error(str(e))
    with col2:
        if st.button(f"Send to {len(recipients)} jurisdiction(s)", type="primary",
                     use_container_width=True, disabled=not recipients):
            try:
                counts = email_service.send_bulk_email(email_type, report_year, subject, body,
                                                       recipients, user_email)
                if counts['failed']:
                    st.warning(f"Sent {counts['sent']}, failed {counts['failed']} (missing contact email)")
                else:
                    st.success(f"Sent {counts['sent']} email(s)")
            except ValueError as e:
                st.error(str(e))
            except DataAccessError as e:
                st.error(str(e))

    st.markdown("### Recent Emails")
    try:
        logs = pay_equity_data.get_email_logs(limit=25)
    except DataAccessError as e:
        st.error(str(e))
        return
    if not logs:
        st.info("No emails sent yet")
        return
    st.dataframe(pd.DataFrame([{
        'Sent': pd.to_datetime(log['sent_at']).strftime("%Y-%m-%d %H:%M") if log.get('sent_at') else '',
        'Type': EMAIL_TYPES.get(log['email_type'], log['email_type']),
        'Recipient': log.get('recipient_email') or '',
        'Subject': log.get('subject') or '',
        'Status': log.get('delivery_status') or '',
    } for log in logs]), hide_index=True, use_container_width=True)
