"""Tests for the jurisdiction approval workflow"""
from unittest.mock import patch

import pytest

import jurisdiction_approval
from jurisdiction_approval import ApprovalError


def item(name, code, status, contact=None):
    return {
        'jurisdiction': {'id': code.lower(), 'name': name, 'jurisdiction_id': code, 'approval_status': status},
        'contact': contact,
        'history': [],
    }


ITEMS = [
    item('Anoka', 'J100', 'pending', {'name': 'Pat Smith', 'email': 'pat@anoka.gov'}),
    item('Blaine', 'J200', 'approved'),
    item('Cass County', 'J300', 'rejected', {'name': 'Lee', 'email': 'lee@cass.gov'}),
    item('Dakota', 'J400', 'pending'),
]


def test_filter_defaults_to_pending():
    names = [i['jurisdiction']['name'] for i in jurisdiction_approval.filter_jurisdictions(ITEMS)]
    assert names == ['Anoka', 'Dakota']


def test_filter_searches_contact_fields():
    result = jurisdiction_approval.filter_jurisdictions(ITEMS, 'all', 'CASS.GOV')
    assert [i['jurisdiction']['name'] for i in result] == ['Cass County']
    result = jurisdiction_approval.filter_jurisdictions(ITEMS, 'all', 'j2')
    assert [i['jurisdiction']['name'] for i in result] == ['Blaine']
    result = jurisdiction_approval.filter_jurisdictions(ITEMS, 'approved', 'pat')
    assert result == []


def test_status_counts():
    assert jurisdiction_approval.status_counts(ITEMS) == {'pending': 2, 'approved': 1, 'rejected': 1}


@patch('jurisdiction_approval.email_service')
@patch('jurisdiction_approval.pay_equity_data')
def test_approve_updates_status_and_history(mock_data, mock_email):
    mock_data.utc_now.return_value = 'now'

    message = jurisdiction_approval.approve_jurisdiction(ITEMS[0], 'admin@example.gov', 'Looks good')

    assert message == "Anoka has been approved successfully!"
    values = mock_data.update_jurisdiction.call_args[0][1]
    assert values['approval_status'] == 'approved'
    assert values['approved_by'] == 'admin@example.gov'
    assert values['approved_at'] == 'now'
    assert values['rejection_reason'] is None
    assert values['status_notes'] == 'Looks good'
    mock_data.add_status_history.assert_called_once_with(
        'j100', 'pending', 'approved', 'admin@example.gov', reason=None, notes='Looks good')
    assert mock_email.send_status_email.call_args[0][0] == 'jurisdiction_approved'


@patch('jurisdiction_approval.email_service')
@patch('jurisdiction_approval.pay_equity_data')
def test_approve_survives_email_failure(mock_data, mock_email):
    mock_email.send_status_email.side_effect = Exception("template table missing")
    message = jurisdiction_approval.approve_jurisdiction(ITEMS[3], 'admin@example.gov')
    assert message == "Dakota has been approved successfully!"


@patch('jurisdiction_approval.pay_equity_data')
def test_reject_requires_reason(mock_data):
    with pytest.raises(ApprovalError, match="Please provide a reason for rejection"):
        jurisdiction_approval.reject_jurisdiction(ITEMS[0], 'admin@example.gov', '  ')
    mock_data.update_jurisdiction.assert_not_called()


@patch('jurisdiction_approval.email_service')
@patch('jurisdiction_approval.pay_equity_data')
def test_reject_records_reason(mock_data, mock_email):
    message = jurisdiction_approval.reject_jurisdiction(ITEMS[0], 'admin@example.gov', ' Not a public employer ')

    assert message == "Anoka status updated."
    values = mock_data.update_jurisdiction.call_args[0][1]
    assert values['approval_status'] == 'rejected'
    assert values['rejection_reason'] == 'Not a public employer'
    kwargs = mock_email.send_status_email.call_args[1]
    assert kwargs['rejection_reason'] == 'Not a public employer'


def test_describe_transition():
    assert jurisdiction_approval.describe_transition({'old_status': 'pending', 'new_status': 'approved'}) == \
        "pending → approved"
    assert jurisdiction_approval.describe_transition({'old_status': None, 'new_status': 'pending'}) == "pending"
