import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

import pay_equity_data

logger = logging.getLogger(__name__)

EMAIL_TYPES = {
    'announcement': "Reporting Announcement",
    'fail_to_report': "Failure to Report",
    'jurisdiction_approved': "Jurisdiction Approved",
    'jurisdiction_rejected': "Jurisdiction Rejected",
}

PLACEHOLDER = re.compile(r"{{\s*(\w+)\s*}}")


def render_template(text: str, values: Dict[str, object]) -> str:
    """Replace {{key}} placeholders; unknown keys are left as written"""
    def substitute(match):
        key = match.group(1)
        if key not in values:
            return match.group(0)
        value = values[key]
        return '' if value is None else str(value)
    return PLACEHOLDER.sub(substitute, text or '')


def template_values(jurisdiction: dict, contact: Optional[dict], **extra) -> Dict[str, object]:
    values = {
        'contact_name': (contact or {}).get('name', ''),
        'jurisdiction_name': jurisdiction.get('name', ''),
        'jurisdiction_id': jurisdiction.get('jurisdiction_id', ''),
    }
    values.update(extra)
    return values


def send_status_email(email_type: str, jurisdiction: dict, contact: Optional[dict], sent_by: str,
                      notes: Optional[str] = None, rejection_reason: Optional[str] = None):
    """Log an approval or rejection notice to the jurisdiction's primary contact"""
    if not contact or not contact.get('email'):
        return None
    template = pay_equity_data.get_email_template(email_type)
    if not template:
        logger.warning(f"No active {email_type} email template found")
        return None

    values = template_values(jurisdiction, contact, notes=notes or '',
                             rejection_reason=rejection_reason or '')
    return pay_equity_data.log_email({
        'email_type': email_type,
        'report_year': datetime.now().year,
        'jurisdiction_id': jurisdiction['id'],
        'recipient_email': contact['email'],
        'recipient_name': contact.get('name', ''),
        'subject': render_template(template['subject'], values),
        'body': render_template(template['body'], values),
        'sent_by': sent_by,
        'delivery_status': 'sent',
    })


def find_non_reporting_jurisdictions(report_year: int) -> List[dict]:
    """Approved jurisdictions without a submitted report for the year"""
    submitted = {
        str(r['jurisdiction_id']) for r in pay_equity_data.get_reports_for_year(report_year)
        if r.get('case_status') in ('Submitted', 'In Compliance', 'Out of Compliance')
    }
    return [j for j in pay_equity_data.get_jurisdictions()
            if j.get('approval_status') == 'approved' and str(j['id']) not in submitted]


def send_bulk_email(email_type: str, report_year: int, subject: str, body: str,
                    jurisdiction_ids: List[str], sent_by: str) -> Dict[str, int]:
    """Render and log one message per selected jurisdiction's primary contact"""
    if email_type not in EMAIL_TYPES:
        raise ValueError(f"Unknown email type: {email_type}")
    if not subject.strip() or not body.strip():
        raise ValueError("Subject and message body are required")

    counts = {'sent': 0, 'failed': 0}
    for jurisdiction_pk in jurisdiction_ids:
        jurisdiction = pay_equity_data.get_jurisdiction(jurisdiction_pk)
        if jurisdiction is None:
            logger.warning(f"Skipping unknown jurisdiction {jurisdiction_pk}")
            continue
        contact = pay_equity_data.get_primary_contact(jurisdiction_pk)
        values = template_values(jurisdiction, contact, report_year=report_year)
        entry = {
            'email_type': email_type,
            'report_year': report_year,
            'jurisdiction_id': jurisdiction_pk,
            'recipient_email': (contact or {}).get('email', ''),
            'recipient_name': (contact or {}).get('name', ''),
            'subject': render_template(subject, values),
            'body': render_template(body, values),
            'sent_by': sent_by,
            'delivery_status': 'sent',
        }
        if not entry['recipient_email']:
            entry['delivery_status'] = 'failed'
            entry['error_message'] = "No primary contact email on file"
            counts['failed'] += 1
        else:
            counts['sent'] += 1
        pay_equity_data.log_email(entry)

    logger.info(f"Bulk {email_type} email for {report_year}: {counts}")
    return counts


def save_draft(email_type: str, report_year: int, subject: str, body: str,
               jurisdiction_ids: List[str], created_by: str, draft_id: Optional[str] = None):
    return pay_equity_data.save_email_draft({
        'email_type': email_type,
        'report_year': report_year,
        'subject': subject,
        'body': body,
        'selected_jurisdictions': [str(j) for j in jurisdiction_ids],
        'created_by': created_by,
    }, draft_id)
