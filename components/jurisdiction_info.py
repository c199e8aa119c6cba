import streamlit as st

from components.status_badges import approval_badge


def display_jurisdiction_info(jurisdiction, contacts=None):
    if jurisdiction is None:
        return

    col1, col2 = st.columns([2, 1])

    with col1:
        st.markdown(f"## {jurisdiction['name']}")
        st.markdown(f"**Jurisdiction ID:** {jurisdiction['jurisdiction_id']}")
        st.markdown(f"**Type:** {jurisdiction.get('jurisdiction_type') or 'N/A'}")
        st.markdown(f"**Status:** {approval_badge(jurisdiction.get('approval_status'))}",
                    unsafe_allow_html=True)

        address = ", ".join(p for p in [jurisdiction.get('address'), jurisdiction.get('city'),
                                        f"{jurisdiction.get('state') or ''} {jurisdiction.get('zipcode') or ''}".strip()]
                            if p)
        st.markdown(f"**Address:** {address or 'N/A'}")
        st.markdown(f"**Phone:** {jurisdiction.get('phone') or 'N/A'}")

        if jurisdiction.get('next_report_year'):
            st.markdown(f"**Next Report Year:** {jurisdiction['next_report_year']}")

        # Follow-up reminder
        if jurisdiction.get('follow_up_type'):
            follow_up = jurisdiction['follow_up_type']
            if jurisdiction.get('follow_up_date'):
                follow_up += f" by {jurisdiction['follow_up_date'].strftime('%B %d, %Y')}"
            st.warning(f"Follow-up: {follow_up}")

    with col2:
        st.markdown("### Contacts")
        if not contacts:
            st.info("No contacts on file")
        for contact in contacts or []:
            primary = " (Primary)" if contact.get('is_primary') else ""
            st.markdown(f"**{contact['name']}**{primary}")
            if contact.get('title'):
                st.markdown(contact['title'])
            st.markdown(f"{contact.get('email') or ''}  \n{contact.get('phone') or ''}")


def display_status_legend():
    st.markdown("### Status Legend")
    st.markdown(
        "<div>" + "<br>".join(approval_badge(s) for s in ('pending', 'approved', 'rejected')) + "</div>",
        unsafe_allow_html=True)
