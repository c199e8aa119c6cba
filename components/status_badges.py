APPROVAL_BADGES = {
    'approved': ('badge-approved', "✓ Approved"),
    'rejected': ('badge-rejected', "✕ Rejected"),
    'pending': ('badge-pending', "◷ Pending"),
}

COMPLIANCE_BADGES = {
    'IN COMPLIANCE': 'badge-approved',
    'MANUAL REVIEW REQUIRED': 'badge-pending',
    'OUT OF COMPLIANCE': 'badge-rejected',
}


def approval_badge(status):
    if status not in APPROVAL_BADGES:
        return ''
    css_class, label = APPROVAL_BADGES[status]
    return f"<span class='badge {css_class}'>{label}</span>"


def compliance_badge(label):
    return f"<span class='badge {COMPLIANCE_BADGES.get(label, 'badge-pending')}'>{label}</span>"


def pass_fail_badge(passed):
    if passed:
        return "<span class='badge badge-approved'>PASSED</span>"
    return "<span class='badge badge-rejected'>FAILED</span>"
