import pandas as pd
import streamlit as st

import pay_equity_data
from compliance_analysis import analyze_compliance, compliance_status_label
from components.charts import create_pay_line_chart
from components.status_badges import compliance_badge, pass_fail_badge
from pay_equity_data import DataAccessError
from pdf_generator import format_currency, format_number, format_percent


def render_test_results():
    """Compliance test results for the active report"""
    report = st.session_state.get('active_report')
    if report is None:
        st.warning("Select a report first.")
        return

    st.subheader(f"Test Results: {report['report_year']} Case {report['case_number']}")
    try:
        jobs = pay_equity_data.get_job_classifications(report['id'])
    except DataAccessError as e:
        st.error(str(e))
        return

    result = analyze_compliance(jobs)
    st.markdown(compliance_badge(compliance_status_label(result)), unsafe_allow_html=True)
    st.markdown(result.message)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Job Classes", result.total_jobs)
    col2.metric("Male-Dominated", result.male_jobs)
    col3.metric("Female-Dominated", result.female_jobs)
    col4.metric("Balanced", result.balanced_jobs)

    if result.underpayment_test:
        render_test_cards(result)

    if result.job_results:
        st.plotly_chart(create_pay_line_chart(result), use_container_width=True)

        with st.expander("Job class detail"):
            st.dataframe(pd.DataFrame([{
                'Job #': j.job_number,
                'Title': j.title,
                'Class Type': j.classification.title(),
                'Points': j.points,
                'Pay': format_currency(j.pay),
                'Predicted Pay': format_currency(j.predicted_pay) if j.predicted_pay is not None else '',
                'Difference': format_currency(j.difference) if j.difference is not None else '',
            } for j in result.job_results]), hide_index=True, use_container_width=True)

    if st.button("View Compliance Report", type="primary"):
        st.session_state.view = 'compliance_report'
        st.rerun()


def render_test_cards(result):
    col1, col2, col3 = st.columns(3)

    with col1:
        test = result.underpayment_test
        st.markdown("#### Statistical Analysis (II)")
        st.markdown(pass_fail_badge(result.statistical_test_passed), unsafe_allow_html=True)
        st.metric("Underpayment Ratio", format_percent(test.ratio),
                  help=f"Threshold {format_percent(test.threshold)}")
        st.caption(f"Male classes below predicted pay: {test.male_below} of {test.male_total}")
        st.caption(f"Female classes below predicted pay: {test.female_below} of {test.female_total}")
        if result.t_test:
            t = result.t_test
            st.caption(f"T-test: t = {format_number(t.t_value, 3)}, critical value "
                       f"{format_number(t.critical_value, 3)} (df {t.degrees_of_freedom})")

    with col2:
        test = result.salary_range_test
        st.markdown("#### Salary Range (III)")
        st.markdown(pass_fail_badge(test.passed), unsafe_allow_html=True)
        st.metric("Ratio", format_percent(test.ratio), help=f"Threshold {format_percent(test.threshold)}")
        st.caption(f"Male average years to max: {format_number(test.male_average)}")
        st.caption(f"Female average years to max: {format_number(test.female_average)}")

    with col3:
        test = result.exceptional_service_test
        st.markdown("#### Exceptional Service Pay (IV)")
        st.markdown(pass_fail_badge(test.passed), unsafe_allow_html=True)
        st.metric("Ratio", format_percent(test.ratio), help=f"Threshold {format_percent(test.threshold)}")
        st.caption(f"Male classes with exceptional service pay: {format_number(test.male_percentage)}%")
        st.caption(f"Female classes with exceptional service pay: {format_number(test.female_percentage)}%")
