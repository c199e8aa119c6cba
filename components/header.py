import streamlit as st

import config

GO_TO_ITEMS = [
    # (view, label, requires)
    ('jobs', "Jobs", 'report'),
    ('test_results', "Test Results", 'report'),
    ('reports', "Reports", 'jurisdiction'),
    ('jurisdiction_lookup', "Jurisdiction Lookup", None),
    ('notes', "Notes", 'jurisdiction'),
]

UTILITY_ITEMS = [
    ('change_password', "Change Password", False),
    ('send_email', "Send Email", True),
    ('jurisdiction_approval', "Jurisdiction Approval", True),
]


def get_nav_items(is_admin, has_active_jurisdiction, has_active_report):
    """Menu entries the current user can open, grouped by menu"""
    available = {None: True, 'jurisdiction': has_active_jurisdiction, 'report': has_active_report}
    items = {
        'main': [('home', "Home")],
        'go_to': [(view, label) for view, label, requires in GO_TO_ITEMS if available[requires]],
        'utilities': [(view, label) for view, label, admin_only in UTILITY_ITEMS
                      if is_admin or not admin_only],
    }
    if is_admin:
        items['main'].append(('dashboard', "Dashboard"))
    return items


def navigate(view):
    st.session_state.view = view
    st.rerun()


def render_header(profile, is_admin, on_sign_out):
    """Render the title band and navigation menus"""
    current_view = st.session_state.get('view', 'home')
    jurisdiction = st.session_state.get('active_jurisdiction')
    report = st.session_state.get('active_report')

    st.markdown(f"""
        <div class="app-header">
            <h1>{config.APP_TITLE}</h1>
            <p>{config.AGENCY_NAME}</p>
        </div>
        """, unsafe_allow_html=True)

    items = get_nav_items(is_admin, jurisdiction is not None, report is not None)
    cols = st.columns([1, 1, 1, 1, 3, 1])

    for col, (view, label) in zip(cols, items['main']):
        with col:
            if st.button(label, key=f"nav_{view}", type='primary' if view == current_view else 'secondary',
                         use_container_width=True):
                navigate(view)

    with cols[2]:
        with st.popover("Go To", use_container_width=True):
            if not items['go_to']:
                st.caption("Select a jurisdiction to see more pages")
            for view, label in items['go_to']:
                if st.button(label, key=f"goto_{view}", use_container_width=True):
                    navigate(view)

    with cols[3]:
        with st.popover("Utilities", use_container_width=True):
            for view, label in items['utilities']:
                if st.button(label, key=f"util_{view}", use_container_width=True):
                    navigate(view)

    with cols[4]:
        context = []
        if jurisdiction:
            context.append(f"**{jurisdiction['name']}** ({jurisdiction['jurisdiction_id']})")
        if report:
            context.append(f"{report['report_year']} Case {report['case_number']}")
        st.markdown(" | ".join(context) or f"Signed in as {profile.get('email', '')}")

    with cols[5]:
        with st.popover("Log Out", use_container_width=True):
            st.write("Are you sure you want to log out?")
            if st.button("Yes, log out", key="confirm_sign_out", type='primary'):
                on_sign_out()
