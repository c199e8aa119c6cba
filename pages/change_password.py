import streamlit as st

import auth


def render_change_password():
    st.subheader("Change Password")

    with st.form("change_password_form", clear_on_submit=True):
        new_password = st.text_input("New password", type="password",
                                     help=f"At least {auth.MIN_PASSWORD_LENGTH} characters")
        confirm_password = st.text_input("Confirm new password", type="password")
        submitted = st.form_submit_button("Change Password", type="primary")

    if submitted:
        try:
            auth.update_password(st.session_state.auth_session, new_password, confirm_password)
            st.success("Your password has been changed.")
        except auth.AuthError as e:
            st.error(str(e))
