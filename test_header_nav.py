"""Tests for navigation menu gating"""
from components.header import get_nav_items


def views(items, menu):
    return [view for view, _ in items[menu]]


def test_go_to_menu_offers_only_lookup_without_selection():
    items = get_nav_items(is_admin=False, has_active_jurisdiction=False, has_active_report=False)
    assert views(items, 'go_to') == ['jurisdiction_lookup']
    assert views(items, 'main') == ['home']


def test_jurisdiction_unlocks_reports_lookup_and_notes():
    items = get_nav_items(False, True, False)
    assert views(items, 'go_to') == ['reports', 'jurisdiction_lookup', 'notes']


def test_report_unlocks_jobs_and_test_results():
    items = get_nav_items(False, True, True)
    assert views(items, 'go_to') == ['jobs', 'test_results', 'reports', 'jurisdiction_lookup', 'notes']


def test_utilities_for_jurisdiction_users():
    items = get_nav_items(False, True, True)
    assert views(items, 'utilities') == ['change_password']


def test_admin_menus():
    items = get_nav_items(True, False, False)
    assert views(items, 'main') == ['home', 'dashboard']
    assert views(items, 'utilities') == ['change_password', 'send_email', 'jurisdiction_approval']


def test_lookup_available_to_admin_without_jurisdiction():
    items = get_nav_items(True, False, False)
    assert 'jurisdiction_lookup' in views(items, 'go_to')
