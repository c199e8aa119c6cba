"""Tests for email templating and logging"""
from unittest.mock import patch

import pytest

import email_service


def test_render_template_substitutes_known_keys():
    text = "Dear {{contact_name}}, {{ jurisdiction_name }} owes {{unknown}}"
    rendered = email_service.render_template(text, {'contact_name': 'Pat', 'jurisdiction_name': 'Anoka'})
    assert rendered == "Dear Pat, Anoka owes {{unknown}}"


def test_render_template_blank_for_none():
    assert email_service.render_template("Reason: {{rejection_reason}}", {'rejection_reason': None}) == "Reason: "
    assert email_service.render_template(None, {}) == ''


@patch('email_service.pay_equity_data')
def test_status_email_skipped_without_contact_email(mock_data):
    assert email_service.send_status_email('jurisdiction_approved', {'id': 'j1'}, {'name': 'Pat'},
                                           'admin@example.gov') is None
    mock_data.log_email.assert_not_called()


@patch('email_service.pay_equity_data')
def test_status_email_skipped_without_template(mock_data):
    mock_data.get_email_template.return_value = None
    result = email_service.send_status_email('jurisdiction_approved', {'id': 'j1'},
                                             {'email': 'pat@example.gov'}, 'admin@example.gov')
    assert result is None
    mock_data.log_email.assert_not_called()


@patch('email_service.pay_equity_data')
def test_status_email_rendered_and_logged(mock_data):
    mock_data.get_email_template.return_value = {
        'subject': "{{jurisdiction_name}} registration",
        'body': "Hello {{contact_name}}: {{rejection_reason}}",
    }
    jurisdiction = {'id': 'j1', 'name': 'Anoka', 'jurisdiction_id': 'J100'}
    contact = {'name': 'Pat', 'email': 'pat@example.gov'}

    email_service.send_status_email('jurisdiction_rejected', jurisdiction, contact,
                                    'admin@example.gov', rejection_reason='Duplicate')

    logged = mock_data.log_email.call_args[0][0]
    assert logged['subject'] == "Anoka registration"
    assert logged['body'] == "Hello Pat: Duplicate"
    assert logged['recipient_email'] == 'pat@example.gov'
    assert logged['delivery_status'] == 'sent'


@patch('email_service.pay_equity_data')
def test_bulk_email_counts_missing_contacts(mock_data):
    mock_data.get_jurisdiction.side_effect = lambda pk: {'id': pk, 'name': f"J {pk}", 'jurisdiction_id': pk}
    mock_data.get_primary_contact.side_effect = lambda pk: (
        {'name': 'Pat', 'email': 'pat@example.gov'} if pk == 'j1' else None)

    counts = email_service.send_bulk_email('announcement', 2025, "{{report_year}} report",
                                           "Dear {{contact_name}}", ['j1', 'j2'], 'admin@example.gov')

    assert counts == {'sent': 1, 'failed': 1}
    first, second = [c[0][0] for c in mock_data.log_email.call_args_list]
    assert first['subject'] == "2025 report"
    assert second['delivery_status'] == 'failed'
    assert second['error_message'] == "No primary contact email on file"


def test_bulk_email_validation():
    with pytest.raises(ValueError, match="Unknown email type"):
        email_service.send_bulk_email('newsletter', 2025, "s", "b", [], 'admin@example.gov')
    with pytest.raises(ValueError, match="required"):
        email_service.send_bulk_email('announcement', 2025, " ", "b", [], 'admin@example.gov')


@patch('email_service.pay_equity_data')
def test_find_non_reporting_jurisdictions(mock_data):
    mock_data.get_reports_for_year.return_value = [
        {'jurisdiction_id': 'j1', 'case_status': 'Submitted'},
        {'jurisdiction_id': 'j2', 'case_status': 'Private'},
    ]
    mock_data.get_jurisdictions.return_value = [
        {'id': 'j1', 'approval_status': 'approved'},
        {'id': 'j2', 'approval_status': 'approved'},
        {'id': 'j3', 'approval_status': 'pending'},
    ]
    result = email_service.find_non_reporting_jurisdictions(2025)
    assert [j['id'] for j in result] == ['j2']
