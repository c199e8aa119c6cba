import pandas as pd
import streamlit as st

import pay_equity_data
from compliance_analysis import classify_job
from pay_equity_data import DataAccessError, JOB_FIELDS
from submission import validate_jobs

EDITABLE_STATUSES = ('Private', 'Shared')

COLUMN_CONFIG = {
    'job_number': st.column_config.NumberColumn("Job #", min_value=1, step=1, required=True),
    'title': st.column_config.TextColumn("Title", required=True),
    'males': st.column_config.NumberColumn("Males", min_value=0, step=1, default=0),
    'females': st.column_config.NumberColumn("Females", min_value=0, step=1, default=0),
    'nonbinary': st.column_config.NumberColumn("Nonbinary", min_value=0, step=1, default=0),
    'points': st.column_config.NumberColumn("Points", min_value=0, step=1, default=0),
    'min_salary': st.column_config.NumberColumn("Min Monthly Salary", min_value=0, format="$%d", default=0),
    'max_salary': st.column_config.NumberColumn("Max Monthly Salary", min_value=0, format="$%d", default=0),
    'years_to_max': st.column_config.NumberColumn("Years to Max", min_value=0, default=0),
    'years_service_pay': st.column_config.NumberColumn("Years Service Pay", min_value=0, default=0),
    'exceptional_service_category': st.column_config.TextColumn("Exceptional Service"),
    'benefits_included_in_salary': st.column_config.NumberColumn("Benefits in Salary", min_value=0,
                                                                 format="$%d", default=0),
    'is_part_time': st.column_config.CheckboxColumn("Part Time", default=False),
    'hours_per_week': st.column_config.NumberColumn("Hours/Week", min_value=0, max_value=40),
    'days_per_year': st.column_config.NumberColumn("Days/Year", min_value=0, max_value=366, step=1),
    'additional_cash_compensation': st.column_config.NumberColumn("Additional Cash", min_value=0,
                                                                  format="$%d", default=0),
}

INTEGER_FIELDS = ('job_number', 'males', 'females', 'nonbinary', 'points', 'days_per_year')
TEXT_FIELDS = ('title', 'exceptional_service_category')


def jobs_to_frame(jobs):
    """Typed editor frame; ids become strings so the table can be serialized"""
    df = pd.DataFrame(jobs, columns=['id'] + JOB_FIELDS)
    df['id'] = df['id'].map(lambda v: None if v is None else str(v))
    for col in JOB_FIELDS:
        if col in TEXT_FIELDS:
            df[col] = df[col].fillna('').astype(str)
        elif col == 'is_part_time':
            df[col] = df[col].fillna(False).astype(bool)
        else:
            df[col] = pd.to_numeric(df[col], errors='coerce')
    return df


def frame_to_jobs(df):
    """Editor rows as job dicts, dropping blank rows and NaN cells"""
    clean = df.astype(object).where(pd.notna(df), None)
    jobs = []
    for row in clean.to_dict('records'):
        if row.get('job_number') is None and not row.get('title'):
            continue
        for key in INTEGER_FIELDS:
            if row.get(key) is not None:
                row[key] = int(row[key])
        row['is_part_time'] = bool(row.get('is_part_time'))
        jobs.append(row)
    return jobs


def render_jobs():
    """Editable job classification table for the active report"""
    report = st.session_state.get('active_report')
    if report is None:
        st.warning("Select a report first.")
        return

    st.subheader(f"Job Classes: {report['report_year']} Case {report['case_number']}")
    user_email = st.session_state.user_profile.get('email')
    editable = report['case_status'] in EDITABLE_STATUSES

    try:
        jobs = pay_equity_data.get_job_classifications(report['id'])
    except DataAccessError as e:
        st.error(str(e))
        return

    if not editable:
        st.info(f"This report is {report['case_status'].lower()}; job classes are read-only.")

    edited = st.data_editor(
        jobs_to_frame(jobs),
        column_config=COLUMN_CONFIG,
        column_order=JOB_FIELDS,
        num_rows='dynamic' if editable else 'fixed',
        disabled=not editable,
        hide_index=True,
        use_container_width=True,
        key=f"jobs_editor_{report['id']}",
    )
    edited_jobs = frame_to_jobs(edited)

    # Class type summary
    counts = {'male': 0, 'female': 0, 'balanced': 0}
    for job in edited_jobs:
        counts[classify_job(job)] += 1
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Job Classes", len(edited_jobs))
    col2.metric("Male-Dominated", counts['male'])
    col3.metric("Female-Dominated", counts['female'])
    col4.metric("Balanced", counts['balanced'])

    issues = validate_jobs(edited_jobs)
    if issues:
        with st.expander(f"Validation issues ({len(issues)})", expanded=True):
            for issue in issues:
                st.warning(issue.message)

    if editable:
        col1, col2 = st.columns([1, 5])
        with col1:
            if st.button("Save Jobs", type="primary", use_container_width=True):
                try:
                    counts = pay_equity_data.save_job_classifications(report, edited_jobs, user_email)
                    st.success(f"Saved: {counts['inserted']} added, {counts['updated']} updated, "
                               f"{counts['deleted']} removed")
                except DataAccessError as e:
                    st.error(str(e))
        with col2:
            if st.button("View Test Results"):
                st.session_state.view = 'test_results'
                st.rerun()
