import pandas as pd
import streamlit as st

import pay_equity_data
from pay_equity_data import DataAccessError


def render_notes():
    """Notes kept on the active jurisdiction"""
    jurisdiction = st.session_state.get('active_jurisdiction')
    if jurisdiction is None:
        st.warning("Select a jurisdiction first.")
        return

    user_email = st.session_state.user_profile.get('email')
    st.subheader(f"Notes for {jurisdiction['name']}")

    with st.expander("Add Note"):
        with st.form("new_note_form", clear_on_submit=True):
            title = st.text_input("Title")
            content = st.text_area("Note")
            if st.form_submit_button("Add Note", type="primary"):
                if not title.strip():
                    st.error("A title is required")
                else:
                    try:
                        pay_equity_data.create_note(jurisdiction['id'], title.strip(), content, user_email)
                        st.success("Note added")
                    except DataAccessError as e:
                        st.error(str(e))

    try:
        notes = pay_equity_data.get_notes(jurisdiction['id'])
    except DataAccessError as e:
        st.error(str(e))
        return

    if not notes:
        st.info("No notes yet")
        return

    for note in notes:
        updated = pd.to_datetime(note['updated_at']).strftime("%Y-%m-%d %H:%M") if note.get('updated_at') else ''
        with st.expander(f"{note['title']} ({updated})"):
            title = st.text_input("Title", value=note['title'], key=f"title_{note['id']}")
            content = st.text_area("Note", value=note.get('content') or '', key=f"content_{note['id']}")
            col1, col2 = st.columns([1, 5])
            with col1:
                if st.button("Save", key=f"save_{note['id']}", type="primary"):
                    try:
                        pay_equity_data.update_note(note, title, content, user_email)
                        st.rerun()
                    except DataAccessError as e:
                        st.error(str(e))
            with col2:
                if st.button("Delete", key=f"delete_{note['id']}"):
                    try:
                        pay_equity_data.delete_note(note, user_email)
                        st.rerun()
                    except DataAccessError as e:
                        st.error(str(e))
