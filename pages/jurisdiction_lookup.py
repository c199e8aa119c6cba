import pandas as pd
import streamlit as st

import pay_equity_data
from components.jurisdiction_info import display_jurisdiction_info
from pay_equity_data import DataAccessError

JURISDICTION_TYPES = ['', 'City', 'County', 'School District', 'Township', 'Other']


def render_jurisdiction_lookup():
    """Search jurisdictions and view their contacts and reports"""
    st.subheader("Jurisdiction Lookup")

    col1, col2 = st.columns([2, 1])
    with col1:
        term = st.text_input("Search by name, Jurisdiction ID or city", "")
    with col2:
        jurisdiction_type = st.selectbox("Type", JURISDICTION_TYPES,
                                         format_func=lambda t: t or "All types")

    try:
        results = pay_equity_data.search_jurisdictions(term, jurisdiction_type or None)
    except DataAccessError as e:
        st.error(str(e))
        return

    if not results:
        st.warning("No jurisdictions found.")
        return

    st.dataframe(pd.DataFrame([{
        'Jurisdiction ID': j['jurisdiction_id'],
        'Name': j['name'],
        'Type': j.get('jurisdiction_type') or '',
        'City': j.get('city') or '',
        'Status': (j.get('approval_status') or '').title(),
    } for j in results]), hide_index=True, use_container_width=True)

    by_id = {j['id']: j for j in results}
    selected = st.selectbox("View jurisdiction", list(by_id),
                            format_func=lambda pk: f"{by_id[pk]['name']} ({by_id[pk]['jurisdiction_id']})")
    jurisdiction = by_id[selected]

    try:
        display_jurisdiction_info(jurisdiction, pay_equity_data.get_contacts(jurisdiction['id']))
        reports = pay_equity_data.get_reports(jurisdiction['id'])
    except DataAccessError as e:
        st.error(str(e))
        return

    st.markdown("### Reports")
    if reports:
        st.dataframe(pd.DataFrame([{
            'Year': r['report_year'],
            'Case': r['case_number'],
            'Status': r['case_status'],
            'Compliance': r.get('compliance_status') or '',
        } for r in reports]), hide_index=True, use_container_width=True)
    else:
        st.info("No reports on file")
