"""
Database migration for seeding the default email templates.
Templates are only inserted when no template of the same type exists.
"""

import logging

import pay_equity_data

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES = [
    {
        'name': 'Reporting Announcement',
        'type': 'announcement',
        'subject': '{{report_year}} Pay Equity Report Due for {{jurisdiction_name}}',
        'body': (
            "Dear {{contact_name}},\n\n"
            "{{jurisdiction_name}} (Jurisdiction ID {{jurisdiction_id}}) is scheduled to submit a "
            "pay equity implementation report for {{report_year}}. Reports are due by January 31. "
            "Sign in to the Pay Equity Management System to enter your job class data and run "
            "the compliance tests before submitting.\n\n"
            "Pay Equity Unit\nManagement and Budget"
        ),
    },
    {
        'name': 'Failure to Report',
        'type': 'fail_to_report',
        'subject': 'Overdue: {{report_year}} Pay Equity Report for {{jurisdiction_name}}',
        'body': (
            "Dear {{contact_name}},\n\n"
            "Our records show that {{jurisdiction_name}} (Jurisdiction ID {{jurisdiction_id}}) has "
            "not submitted its {{report_year}} pay equity report. Jurisdictions that fail to report "
            "are subject to penalties under the Local Government Pay Equity Act. Please submit "
            "your report as soon as possible.\n\n"
            "Pay Equity Unit\nManagement and Budget"
        ),
    },
    {
        'name': 'Registration Approved',
        'type': 'jurisdiction_approved',
        'subject': 'Registration approved for {{jurisdiction_name}} ({{jurisdiction_id}})',
        'body': (
            "Dear {{contact_name}},\n\n"
            "Your registration for {{jurisdiction_name}} (Jurisdiction ID {{jurisdiction_id}}) has "
            "been approved. You can now sign in and begin your pay equity report.\n\n"
            "{{notes}}\n\n"
            "Pay Equity Unit\nManagement and Budget"
        ),
    },
    {
        'name': 'Registration Rejected',
        'type': 'jurisdiction_rejected',
        'subject': 'Registration update for {{jurisdiction_name}} ({{jurisdiction_id}})',
        'body': (
            "Dear {{contact_name}},\n\n"
            "We were unable to approve the registration for {{jurisdiction_name}} "
            "(Jurisdiction ID {{jurisdiction_id}}).\n\n"
            "Reason: {{rejection_reason}}\n\n"
            "{{notes}}\n\n"
            "Please contact the Pay Equity Unit with any questions.\n\n"
            "Pay Equity Unit\nManagement and Budget"
        ),
    },
]


def seed_email_templates():
    """Insert any default template whose type is missing; returns the number added"""
    existing = {t['type'] for t in pay_equity_data.get_email_templates()}
    added = 0
    for template in DEFAULT_TEMPLATES:
        if template['type'] in existing:
            continue
        pay_equity_data.insert_row('email_templates', dict(template, is_active=True))
        logger.info(f"Seeded email template: {template['name']}")
        added += 1
    return added
