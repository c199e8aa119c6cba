"""Tests for seeding the default email templates"""
from unittest.mock import patch

from database.migrations.init_email_templates import DEFAULT_TEMPLATES, seed_email_templates
from email_service import EMAIL_TYPES


def test_every_email_type_has_a_default_template():
    assert sorted(t['type'] for t in DEFAULT_TEMPLATES) == sorted(EMAIL_TYPES)


@patch('database.migrations.init_email_templates.pay_equity_data')
def test_seed_only_adds_missing_types(mock_data):
    mock_data.get_email_templates.return_value = [{'type': 'announcement'}]

    added = seed_email_templates()

    assert added == len(DEFAULT_TEMPLATES) - 1
    inserted_types = [c[0][1]['type'] for c in mock_data.insert_row.call_args_list]
    assert 'announcement' not in inserted_types
