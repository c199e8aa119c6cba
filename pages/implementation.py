import streamlit as st

import pay_equity_data
from compliance_analysis import compliance_status_label
from pay_equity_data import DataAccessError
from submission import (CHECKLIST_ITEMS, COMPUTED_ITEMS, SubmissionError, build_checklist,
                        compute_benefits_worksheet, implementation_form_missing, submit_report,
                        validate_jobs)

HEALTH_BENEFITS_OPTIONS = ['', 'Yes', 'No', 'Not Applicable']


def render_implementation():
    """Implementation report, benefits worksheet, checklist and submission"""
    report = st.session_state.get('active_report')
    if report is None:
        st.warning("Select a report first.")
        return

    user_email = st.session_state.user_profile.get('email')
    locked = report['case_status'] not in ('Private', 'Shared')
    st.subheader(f"Implementation & Submission: {report['report_year']} Case {report['case_number']}")

    try:
        jobs = pay_equity_data.get_job_classifications(report['id'])
        implementation = pay_equity_data.get_implementation_report(report['id']) or {}
        saved_checklist = pay_equity_data.get_submission_checklist(report['id'])
    except DataAccessError as e:
        st.error(str(e))
        return

    if locked:
        st.info(f"This report was submitted on {report.get('submitted_at') or 'N/A'} "
                f"and is {report['case_status'].lower()}.")

    tab1, tab2, tab3 = st.tabs(["Implementation Report", "Benefits Worksheet", "Checklist & Submit"])

    with tab1:
        implementation = _render_implementation_form(report, implementation, locked, user_email)

    with tab2:
        _render_benefits_worksheet(report, jobs, locked, user_email)

    with tab3:
        _render_checklist(report, jobs, implementation, saved_checklist, locked, user_email)


def _render_implementation_form(report, implementation, locked, user_email):
    with st.form("implementation_form"):
        evaluation_system = st.text_input("Job evaluation system used",
                                          value=implementation.get('evaluation_system') or '')
        evaluation_description = st.text_area("Description of the evaluation system",
                                              value=implementation.get('evaluation_description') or '')
        current = implementation.get('health_benefits_evaluated') or ''
        health_benefits = st.selectbox(
            "Were health insurance benefits evaluated?", HEALTH_BENEFITS_OPTIONS,
            index=HEALTH_BENEFITS_OPTIONS.index(current) if current in HEALTH_BENEFITS_OPTIONS else 0)
        health_description = st.text_area("Health benefits explanation",
                                          value=implementation.get('health_benefits_description') or '')
        notice_location = st.text_input("Where was the official notice posted?",
                                        value=implementation.get('notice_location') or '')
        col1, col2 = st.columns(2)
        with col1:
            approved_by_body = st.text_input("Governing body that approved the report",
                                             value=implementation.get('approved_by_body') or '')
            chief_elected_official = st.text_input("Chief elected official",
                                                   value=implementation.get('chief_elected_official') or '')
        with col2:
            total_payroll = st.number_input("Total annual payroll", min_value=0.0, step=1000.0,
                                            value=float(implementation.get('total_payroll') or 0))
            official_title = st.text_input("Official's title", value=implementation.get('official_title') or '')
        approval_confirmed = st.checkbox(
            "The governing body has approved this report",
            value=bool(implementation.get('approval_confirmed')))
        submitted = st.form_submit_button("Save Implementation Report", type="primary", disabled=locked)

    if submitted:
        values = {
            'evaluation_system': evaluation_system,
            'evaluation_description': evaluation_description,
            'health_benefits_evaluated': health_benefits,
            'health_benefits_description': health_description,
            'notice_location': notice_location,
            'approved_by_body': approved_by_body,
            'chief_elected_official': chief_elected_official,
            'official_title': official_title,
            'approval_confirmed': approval_confirmed,
            'total_payroll': total_payroll or None,
        }
        try:
            implementation = pay_equity_data.save_implementation_report(report, values, user_email)
            st.success("Implementation report saved")
        except DataAccessError as e:
            st.error(str(e))

    missing = implementation_form_missing(implementation)
    if missing:
        st.warning("Still required: " + ", ".join(missing))
    return implementation


def _render_benefits_worksheet(report, jobs, locked, user_email):
    worksheet = compute_benefits_worksheet(jobs)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Lowest Points", worksheet['lowest_points'])
    col2.metric("Highest Points", worksheet['highest_points'])
    col3.metric("Point Range", worksheet['point_range'])
    col4.metric("Comparable Range", f"{worksheet['comparable_value_range']:.1f}")

    if worksheet['trigger_detected']:
        st.warning("Benefits differences were found between comparable male and female classes:")
        st.dataframe(worksheet['benefits_data']['pairs'], use_container_width=True, hide_index=True)
    else:
        st.success("No comparable female class receives fewer salary-included benefits than a male class.")

    if not locked and st.button("Save Benefits Worksheet"):
        try:
            pay_equity_data.save_benefits_worksheet(report, worksheet, user_email)
            st.success("Benefits worksheet saved")
        except DataAccessError as e:
            st.error(str(e))


def _render_checklist(report, jobs, implementation, saved_checklist, locked, user_email):
    issues = validate_jobs(jobs)
    checklist = build_checklist(saved_checklist, jobs, implementation, issues)

    for key, label in CHECKLIST_ITEMS.items():
        if key in COMPUTED_ITEMS:
            st.checkbox(label, value=checklist[key], disabled=True, key=f"check_{key}")
        else:
            checklist[key] = st.checkbox(label, value=checklist[key], disabled=locked, key=f"check_{key}")

    if issues:
        with st.expander(f"Job data issues ({len(issues)})"):
            for issue in issues:
                st.warning(issue.message)

    if locked:
        return

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Save Checklist", use_container_width=True):
            try:
                pay_equity_data.save_submission_checklist(report, checklist, user_email)
                st.success("Checklist saved")
            except DataAccessError as e:
                st.error(str(e))
    with col2:
        if st.button("Submit Report", type="primary", use_container_width=True):
            try:
                updated, result = submit_report(report, jobs, implementation, checklist, user_email)
                st.session_state.active_report = updated
                st.success(f"Report submitted. Result: {compliance_status_label(result)}")
            except (SubmissionError, DataAccessError) as e:
                st.error(str(e))
