"""
Report submission rules: job data validation, the benefits worksheet,
the submission checklist and the final submit step.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from compliance_analysis import analyze_compliance, classify_job, report_compliance_status, to_number
import pay_equity_data

logger = logging.getLogger(__name__)

COMPARABLE_VALUE_SHARE = 0.10
MAX_PART_TIME_HOURS = 40

CHECKLIST_ITEMS = {
    'job_evaluation_complete': "Job evaluation system applied to every class",
    'jobs_data_entered': "Job class data entered",
    'benefits_evaluated': "Benefits evaluated",
    'compliance_reviewed': "Compliance test results reviewed",
    'implementation_form_complete': "Implementation report completed",
    'governing_body_approved': "Report approved by the governing body",
    'total_payroll_entered': "Total payroll entered",
    'official_notice_posted': "Official notice posted",
    'all_validations_passed': "All job data validations passed",
}

# Items derived from the report data rather than confirmed by the user
COMPUTED_ITEMS = ('jobs_data_entered', 'total_payroll_entered',
                  'implementation_form_complete', 'all_validations_passed')

IMPLEMENTATION_REQUIRED_FIELDS = {
    'evaluation_system': "Job evaluation system",
    'health_benefits_evaluated': "Health benefits evaluated",
    'notice_location': "Notice location",
    'approved_by_body': "Approving governing body",
    'chief_elected_official': "Chief elected official",
    'official_title': "Official's title",
}


class SubmissionError(Exception):
    """Raised when a report cannot be submitted"""


@dataclass
class ValidationIssue:
    job_number: Optional[int]
    field: str
    message: str


def validate_jobs(jobs: List[dict]) -> List[ValidationIssue]:
    """Check every job class for the data the compliance tests rely on"""
    issues: List[ValidationIssue] = []
    seen_numbers = set()

    for job in jobs:
        number = job.get('job_number')
        label = f"Job #{number}" if number is not None else "Job"

        if number is None or to_number(number) <= 0:
            issues.append(ValidationIssue(number, 'job_number', f"{label}: job number must be a positive number"))
        elif number in seen_numbers:
            issues.append(ValidationIssue(number, 'job_number', f"{label}: job number is used more than once"))
        else:
            seen_numbers.add(number)

        if not str(job.get('title') or '').strip():
            issues.append(ValidationIssue(number, 'title', f"{label}: title is required"))

        counts = [to_number(job.get(k)) for k in ('males', 'females', 'nonbinary')]
        if any(c < 0 for c in counts):
            issues.append(ValidationIssue(number, 'males', f"{label}: employee counts cannot be negative"))
        elif sum(counts) == 0:
            issues.append(ValidationIssue(number, 'males', f"{label}: at least one employee is required"))

        if to_number(job.get('points')) <= 0:
            issues.append(ValidationIssue(number, 'points', f"{label}: job evaluation points must be greater than zero"))

        min_salary = to_number(job.get('min_salary'))
        max_salary = to_number(job.get('max_salary'))
        if min_salary < 0 or max_salary < 0:
            issues.append(ValidationIssue(number, 'min_salary', f"{label}: salaries cannot be negative"))
        elif min_salary > max_salary:
            issues.append(ValidationIssue(number, 'max_salary', f"{label}: minimum salary exceeds maximum salary"))

        if to_number(job.get('years_to_max')) < 0:
            issues.append(ValidationIssue(number, 'years_to_max', f"{label}: years to maximum cannot be negative"))

        if job.get('is_part_time'):
            hours = to_number(job.get('hours_per_week'))
            if not 0 < hours < MAX_PART_TIME_HOURS:
                issues.append(ValidationIssue(
                    number, 'hours_per_week',
                    f"{label}: part-time classes need hours per week between 0 and {MAX_PART_TIME_HOURS}"))

    return issues


def compute_benefits_worksheet(jobs: List[dict]) -> Dict:
    """Find comparable male and female classes whose salary-included benefits differ"""
    gendered = [j for j in jobs if classify_job(j) in ('male', 'female')]
    if not gendered:
        return {
            'lowest_points': 0, 'highest_points': 0, 'point_range': 0,
            'comparable_value_range': 0.0, 'trigger_detected': False,
            'trigger_explanation': None, 'benefits_data': {'pairs': []},
        }

    points = [int(to_number(j.get('points'))) for j in gendered]
    lowest, highest = min(points), max(points)
    point_range = highest - lowest
    comparable_range = point_range * COMPARABLE_VALUE_SHARE

    males = [j for j in gendered if classify_job(j) == 'male']
    females = [j for j in gendered if classify_job(j) == 'female']
    pairs = []
    for female in females:
        for male in males:
            if abs(to_number(female.get('points')) - to_number(male.get('points'))) > comparable_range:
                continue
            male_benefit = to_number(male.get('benefits_included_in_salary'))
            female_benefit = to_number(female.get('benefits_included_in_salary'))
            if male_benefit > female_benefit:
                pairs.append({
                    'female_job': female.get('job_number'),
                    'female_title': female.get('title'),
                    'male_job': male.get('job_number'),
                    'male_title': male.get('title'),
                    'difference': male_benefit - female_benefit,
                })

    explanation = None
    if pairs:
        explanation = "; ".join(
            f"{p['female_title']} (#{p['female_job']}) receives ${p['difference']:,.0f} less in "
            f"benefits than {p['male_title']} (#{p['male_job']})"
            for p in pairs)

    return {
        'lowest_points': lowest,
        'highest_points': highest,
        'point_range': point_range,
        'comparable_value_range': comparable_range,
        'trigger_detected': bool(pairs),
        'trigger_explanation': explanation,
        'benefits_data': {'pairs': pairs},
    }


def implementation_form_missing(implementation_report: Optional[dict]) -> List[str]:
    """Labels of required implementation report fields still blank"""
    if not implementation_report:
        return list(IMPLEMENTATION_REQUIRED_FIELDS.values())
    missing = [label for key, label in IMPLEMENTATION_REQUIRED_FIELDS.items()
               if not str(implementation_report.get(key) or '').strip()]
    if not implementation_report.get('approval_confirmed'):
        missing.append("Governing body approval confirmation")
    return missing


def build_checklist(existing: Optional[dict], jobs: List[dict],
                    implementation_report: Optional[dict],
                    issues: List[ValidationIssue]) -> Dict[str, bool]:
    checklist = {key: bool((existing or {}).get(key)) for key in CHECKLIST_ITEMS}
    checklist['jobs_data_entered'] = len(jobs) > 0
    checklist['total_payroll_entered'] = bool(
        implementation_report and to_number(implementation_report.get('total_payroll')) > 0)
    checklist['implementation_form_complete'] = not implementation_form_missing(implementation_report)
    checklist['all_validations_passed'] = len(jobs) > 0 and not issues
    return checklist


def incomplete_items(checklist: Dict[str, bool]) -> List[str]:
    return [label for key, label in CHECKLIST_ITEMS.items() if not checklist.get(key)]


def submit_report(report: dict, jobs: List[dict], implementation_report: Optional[dict],
                  checklist: Dict[str, bool], user_email: Optional[str] = None):
    """Mark a report submitted once every checklist item is satisfied"""
    if report.get('case_status') in ('Submitted', 'In Compliance', 'Out of Compliance'):
        raise SubmissionError("This report has already been submitted.")

    issues = validate_jobs(jobs)
    checklist = dict(checklist)
    checklist.update({k: v for k, v in build_checklist(checklist, jobs, implementation_report, issues).items()
                      if k in COMPUTED_ITEMS})
    missing = incomplete_items(checklist)
    if missing:
        raise SubmissionError("Complete the checklist before submitting: " + ", ".join(missing))

    result = analyze_compliance(jobs)
    now = pay_equity_data.utc_now()
    pay_equity_data.save_submission_checklist(report, dict(checklist, completed_at=now), user_email)
    updated = pay_equity_data.update_report(report, {
        'case_status': 'Submitted',
        'submitted_at': now,
        'compliance_status': report_compliance_status(result),
        'requires_manual_review': result.requires_manual_review,
    }, user_email)
    logger.info(f"Report {report['id']} submitted by {user_email}")
    return updated, result
