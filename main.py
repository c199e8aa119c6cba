import logging

import streamlit as st

import auth
import config
import pay_equity_data
from components.header import render_header
from pages.change_password import render_change_password
from pages.compliance_report import render_compliance_report
from pages.dashboard import render_dashboard
from pages.home import render_home
from pages.implementation import render_implementation
from pages.jobs import render_jobs
from pages.jurisdiction_approval import render_jurisdiction_approval
from pages.jurisdiction_lookup import render_jurisdiction_lookup
from pages.login import render_login
from pages.notes import render_notes
from pages.reports import render_reports
from pages.send_email import render_send_email
from pages.results import render_test_results
from pay_equity_data import DataAccessError

config.configure_logging()
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title=config.APP_TITLE,
    page_icon="⚖️",
    layout="wide",
    initial_sidebar_state="collapsed"
)

# Hide default menu
st.markdown("""
    <style>
    #MainMenu {visibility: hidden;}
    header {visibility: hidden;}
    </style>
    """, unsafe_allow_html=True)

# Load custom CSS
with open('styles.css') as f:
    st.markdown(f'<style>{f.read()}</style>', unsafe_allow_html=True)

# view -> (render function, requires, admin only)
VIEWS = {
    'home': (render_home, None, False),
    'dashboard': (render_dashboard, None, True),
    'reports': (render_reports, 'jurisdiction', False),
    'jobs': (render_jobs, 'report', False),
    'test_results': (render_test_results, 'report', False),
    'compliance_report': (render_compliance_report, 'report', False),
    'implementation': (render_implementation, 'report', False),
    'jurisdiction_lookup': (render_jurisdiction_lookup, None, False),
    'notes': (render_notes, 'jurisdiction', False),
    'change_password': (render_change_password, None, False),
    'send_email': (render_send_email, None, True),
    'jurisdiction_approval': (render_jurisdiction_approval, None, True),
}

# Initialize session state
for key, default in [('auth_session', None), ('user_profile', None), ('view', 'home'),
                     ('active_jurisdiction', None), ('active_report', None)]:
    if key not in st.session_state:
        st.session_state[key] = default


def sign_out():
    session = st.session_state.auth_session
    auth.sign_out(session)
    if session is not None:
        logger.info(f"User signed out: {session.user.email}")
    for key in list(st.session_state.keys()):
        del st.session_state[key]
    st.rerun()


def render_approval_notice(jurisdiction):
    """Shown to jurisdiction users until their registration is approved"""
    st.markdown(f"<h1 class='header'>{config.APP_TITLE}</h1>", unsafe_allow_html=True)
    if jurisdiction and jurisdiction.get('approval_status') == 'rejected':
        st.error(f"The registration for {jurisdiction['name']} was not approved.")
        if jurisdiction.get('rejection_reason'):
            st.markdown(f"**Reason:** {jurisdiction['rejection_reason']}")
        st.markdown("Please contact the pay equity office if you have questions.")
    else:
        name = jurisdiction['name'] if jurisdiction else "your jurisdiction"
        st.info(f"The registration for {name} is pending approval. "
                "You will receive an email once an administrator has reviewed it.")
    if st.button("Log Out"):
        sign_out()


def resolve_view(view, is_admin):
    """Fall back to home when a view's prerequisites are missing"""
    if view not in VIEWS:
        return 'home'
    _, requires, admin_only = VIEWS[view]
    if admin_only and not is_admin:
        return 'home'
    if requires == 'jurisdiction' and st.session_state.active_jurisdiction is None:
        return 'home'
    if requires == 'report' and (st.session_state.active_report is None
                                 or st.session_state.active_jurisdiction is None):
        return 'home'
    return view


if st.session_state.auth_session is None:
    render_login()
else:
    profile = st.session_state.user_profile
    is_admin = auth.is_admin(profile)

    if not is_admin:
        try:
            # Re-read so an approval takes effect without signing in again
            st.session_state.active_jurisdiction = pay_equity_data.get_jurisdiction(profile['jurisdiction_id'])
        except DataAccessError as e:
            st.error(str(e))
            st.stop()

    jurisdiction = st.session_state.active_jurisdiction
    if not is_admin and (jurisdiction is None or jurisdiction.get('approval_status') != 'approved'):
        render_approval_notice(jurisdiction)
    else:
        render_header(profile, is_admin, sign_out)
        view = resolve_view(st.session_state.view, is_admin)
        st.session_state.view = view
        render_function = VIEWS[view][0]
        render_function()
