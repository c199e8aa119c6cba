import logging

import streamlit as st

import config
import pay_equity_data
from compliance_analysis import analyze_compliance
from pages.results import render_test_cards
from pay_equity_data import DataAccessError
from pdf_generator import build_compliance_report_pdf, report_filename

logger = logging.getLogger(__name__)


def render_compliance_report():
    """On-screen compliance report with PDF download"""
    report = st.session_state.get('active_report')
    jurisdiction = st.session_state.get('active_jurisdiction')
    if report is None or jurisdiction is None:
        st.warning("Select a report first.")
        return

    try:
        jobs = pay_equity_data.get_job_classifications(report['id'])
    except DataAccessError as e:
        st.error(str(e))
        return
    result = analyze_compliance(jobs)

    st.subheader("Pay Equity Compliance Report")
    st.markdown(f"**{jurisdiction['name']}** | Report Year {report['report_year']} | "
                f"Case {report['case_number']}: {report.get('case_description') or ''}")
    st.markdown(result.message)

    if result.underpayment_test and not result.requires_manual_review:
        render_test_cards(result)

    try:
        pdf_bytes = build_compliance_report_pdf(report, jurisdiction, jobs, result,
                                                logo_path=config.LOGO_PATH)
    except Exception as e:
        logger.error(f"Error generating compliance report PDF: {str(e)}")
        st.error(f"Error generating PDF: {str(e)}")
        return

    st.download_button(
        "Download PDF",
        data=pdf_bytes,
        file_name=report_filename(jurisdiction, report),
        mime="application/pdf",
        type="primary",
    )
