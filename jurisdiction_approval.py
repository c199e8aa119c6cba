"""
Jurisdiction registration review: load, filter, approve and reject.
"""
import logging
from typing import Dict, List, Optional

import email_service
import pay_equity_data

logger = logging.getLogger(__name__)

STATUS_FILTERS = ['all', 'pending', 'approved', 'rejected']


class ApprovalError(Exception):
    """Raised when an approval action cannot be completed"""


def load_jurisdictions_with_details() -> List[Dict]:
    """Every jurisdiction with its primary contact and status history"""
    details = []
    for jurisdiction in pay_equity_data.get_jurisdictions():
        details.append({
            'jurisdiction': jurisdiction,
            'contact': pay_equity_data.get_primary_contact(jurisdiction['id']),
            'history': pay_equity_data.get_status_history(jurisdiction['id']),
        })
    return details


def filter_jurisdictions(items: List[Dict], status_filter: str = 'pending', search_term: str = '') -> List[Dict]:
    filtered = items
    if status_filter != 'all':
        filtered = [i for i in filtered if i['jurisdiction'].get('approval_status') == status_filter]

    term = search_term.strip().lower()
    if term:
        def matches(item):
            jurisdiction = item['jurisdiction']
            contact = item['contact'] or {}
            fields = [jurisdiction.get('name'), jurisdiction.get('jurisdiction_id'),
                      contact.get('name'), contact.get('email')]
            return any(term in (f or '').lower() for f in fields)
        filtered = [i for i in filtered if matches(i)]
    return filtered


def status_counts(items: List[Dict]) -> Dict[str, int]:
    counts = {'pending': 0, 'approved': 0, 'rejected': 0}
    for item in items:
        status = item['jurisdiction'].get('approval_status')
        if status in counts:
            counts[status] += 1
    return counts


def _set_status(item: Dict, new_status: str, admin_email: str, notes: Optional[str],
                rejection_reason: Optional[str]):
    jurisdiction = item['jurisdiction']
    now = pay_equity_data.utc_now()
    updated = pay_equity_data.update_jurisdiction(jurisdiction['id'], {
        'approval_status': new_status,
        'approved_by': admin_email,
        'approved_at': now,
        'rejection_reason': rejection_reason,
        'status_notes': notes or None,
    }, admin_email)
    pay_equity_data.add_status_history(jurisdiction['id'], jurisdiction.get('approval_status'),
                                       new_status, admin_email, reason=rejection_reason,
                                       notes=notes or None)
    return updated


def approve_jurisdiction(item: Dict, admin_email: str, notes: str = '') -> str:
    """Approve a registration and notify the primary contact; returns the banner text"""
    if not admin_email:
        raise ApprovalError("You must be signed in as an administrator")
    jurisdiction = item['jurisdiction']
    _set_status(item, 'approved', admin_email, notes, None)

    try:
        email_service.send_status_email('jurisdiction_approved', jurisdiction, item['contact'],
                                        admin_email, notes=notes)
    except Exception as e:
        logger.error(f"Error logging approval email: {str(e)}")

    logger.info(f"Jurisdiction {jurisdiction['jurisdiction_id']} approved by {admin_email}")
    return f"{jurisdiction['name']} has been approved successfully!"


def reject_jurisdiction(item: Dict, admin_email: str, rejection_reason: str, notes: str = '') -> str:
    if not admin_email:
        raise ApprovalError("You must be signed in as an administrator")
    if not rejection_reason.strip():
        raise ApprovalError("Please provide a reason for rejection")
    jurisdiction = item['jurisdiction']
    _set_status(item, 'rejected', admin_email, notes, rejection_reason.strip())

    try:
        email_service.send_status_email('jurisdiction_rejected', jurisdiction, item['contact'],
                                        admin_email, notes=notes,
                                        rejection_reason=rejection_reason.strip())
    except Exception as e:
        logger.error(f"Error logging rejection email: {str(e)}")

    logger.info(f"Jurisdiction {jurisdiction['jurisdiction_id']} rejected by {admin_email}")
    return f"{jurisdiction['name']} status updated."


def describe_transition(record: Dict) -> str:
    if record.get('old_status'):
        return f"{record['old_status']} → {record['new_status']}"
    return record['new_status']
