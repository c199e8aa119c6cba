import streamlit as st

import auth
import config
import pay_equity_data
from pay_equity_data import DataAccessError

LOGIN_MODES = {
    'sign_in': "Sign In",
    'sign_up': "Register",
    'reset': "Reset Password",
}


def _start_session(session):
    """Store the signed-in session and the user's profile"""
    profile = pay_equity_data.get_user_profile(session.user.id)
    if profile is None:
        raise auth.AuthError("No user profile was found for this account. Please contact the administrator.")
    st.session_state.auth_session = session
    st.session_state.user_profile = profile
    st.session_state.view = 'home'
    st.session_state.active_report = None
    if profile.get('jurisdiction_id'):
        st.session_state.active_jurisdiction = pay_equity_data.get_jurisdiction(profile['jurisdiction_id'])


def render_login():
    """Render the sign in, registration and password reset forms"""
    if 'login_mode' not in st.session_state:
        st.session_state.login_mode = 'sign_in'

    st.markdown(f"<h1 class='header'>{config.APP_TITLE}</h1>", unsafe_allow_html=True)
    st.markdown(f"Minnesota {config.AGENCY_NAME} - Local Government Pay Equity Reporting")

    _, center, _ = st.columns([1, 2, 1])
    with center:
        mode = st.radio("Mode", list(LOGIN_MODES), format_func=LOGIN_MODES.get, horizontal=True,
                        index=list(LOGIN_MODES).index(st.session_state.login_mode),
                        label_visibility='collapsed')
        st.session_state.login_mode = mode

        if mode == 'sign_in':
            _render_sign_in()
        elif mode == 'sign_up':
            _render_sign_up()
        else:
            _render_reset()

        with st.expander("Instructions"):
            st.markdown("""
            - **Returning users**: sign in with the email and password you registered with.
            - **New users**: register with the Jurisdiction ID printed on your notice letter.
              Your account can be used once an administrator approves your jurisdiction.
            - **Forgot your password?** Request a reset link and follow the emailed instructions.
            """)


def _render_sign_in():
    with st.form("sign_in_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign In", type="primary")

    if submitted:
        try:
            session = auth.sign_in(email, password)
            _start_session(session)
            st.rerun()
        except (auth.AuthError, DataAccessError) as e:
            st.error(str(e))


def _render_sign_up():
    with st.form("sign_up_form"):
        jurisdiction_code = st.text_input("Jurisdiction ID")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password",
                                 help=f"At least {auth.MIN_PASSWORD_LENGTH} characters")
        submitted = st.form_submit_button("Register", type="primary")

    if submitted:
        try:
            auth.sign_up(email, password, jurisdiction_code)
            st.success("Registration received. Check your email to confirm your account, "
                       "then sign in once your jurisdiction has been approved.")
        except (auth.AuthError, DataAccessError) as e:
            st.error(str(e))


def _render_reset():
    with st.form("reset_form"):
        email = st.text_input("Email")
        submitted = st.form_submit_button("Send Reset Link", type="primary")

    if submitted:
        try:
            auth.reset_password(email)
            st.success("If an account exists for that address, a password reset link has been sent.")
        except auth.AuthError as e:
            st.error(str(e))
