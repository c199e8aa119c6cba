"""Tests for the backend client with the database connection mocked out"""
from unittest.mock import MagicMock, patch

import pytest

import pay_equity_data
from pay_equity_data import DataAccessError


@pytest.fixture
def mock_conn():
    conn = MagicMock()
    conn.closed = False
    with patch('pay_equity_data.get_db_connection', return_value=conn), \
            patch('pay_equity_data.return_db_connection') as return_conn:
        conn.return_conn = return_conn
        yield conn


def test_unknown_table_is_rejected():
    with pytest.raises(ValueError, match="Unknown table"):
        pay_equity_data.select_rows('employees')


def test_unknown_column_is_rejected():
    with pytest.raises(ValueError, match="Unknown column"):
        pay_equity_data.select_rows('reports', {'employee_id': 1})
    with pytest.raises(ValueError, match="Unknown column"):
        pay_equity_data.insert_row('notes', {'title': 'x', 'author': 'y'})


def test_update_and_delete_require_filters():
    with pytest.raises(ValueError, match="without filters"):
        pay_equity_data.update_rows('notes', {'title': 'x'}, {})
    with pytest.raises(ValueError, match="without filters"):
        pay_equity_data.delete_rows('notes', {})


def test_select_rows_returns_dicts(mock_conn):
    cur = mock_conn.cursor.return_value
    cur.fetchall.return_value = [{'id': 'a', 'name': 'Anoka'}]

    rows = pay_equity_data.select_rows('jurisdictions', {'approval_status': 'approved'},
                                       order_by='name', limit=10)

    assert rows == [{'id': 'a', 'name': 'Anoka'}]
    params = cur.execute.call_args[0][1]
    assert params == ['approved', 10]
    mock_conn.return_conn.assert_called_once_with(mock_conn)


def test_select_rows_without_connection():
    with patch('pay_equity_data.get_db_connection', return_value=None):
        with pytest.raises(DataAccessError, match="Unable to connect"):
            pay_equity_data.select_rows('jurisdictions')


def test_query_errors_roll_back(mock_conn):
    cur = mock_conn.cursor.return_value
    cur.execute.side_effect = Exception("relation does not exist")

    with pytest.raises(DataAccessError, match="relation does not exist"):
        pay_equity_data.insert_row('notes', {'title': 'x', 'content': 'y'})
    mock_conn.rollback.assert_called_once()
    mock_conn.commit.assert_not_called()


def test_update_rows_sets_updated_at(mock_conn):
    cur = mock_conn.cursor.return_value
    cur.fetchall.return_value = [{'id': 'n1', 'title': 'New'}]

    rows = pay_equity_data.update_rows('notes', {'title': 'New'}, {'id': 'n1'})

    assert rows == [{'id': 'n1', 'title': 'New'}]
    params = cur.execute.call_args[0][1]
    assert params[0] == 'New'
    assert params[-1] == 'n1'
    assert len(params) == 3
    mock_conn.commit.assert_called_once()


def test_delete_rows_returns_rowcount(mock_conn):
    mock_conn.cursor.return_value.rowcount = 2
    assert pay_equity_data.delete_rows('email_drafts', {'id': ['d1', 'd2']}) == 2


def test_log_audit_does_not_raise():
    with patch('pay_equity_data.insert_row', side_effect=DataAccessError("down")):
        pay_equity_data.log_audit('update', 'reports', 'r1')


@patch('pay_equity_data.log_audit')
@patch('pay_equity_data.insert_row')
@patch('pay_equity_data.select_rows')
def test_create_report_uses_next_case_number(mock_select, mock_insert, mock_audit):
    mock_select.return_value = [{'case_number': 1}, {'case_number': 3}]
    mock_insert.side_effect = lambda table, values: dict(values, id='r9')

    report = pay_equity_data.create_report('j1', 2025, 'Annual', 'clerk@example.gov')

    assert report['case_number'] == 4
    assert report['case_status'] == 'Private'
    assert mock_audit.call_args[0][:3] == ('insert', 'reports', 'r9')


class FakeJobTable:
    """In-memory job_classifications table enforcing unique job numbers"""

    def __init__(self, rows):
        self.rows = {r['id']: dict(r) for r in rows}
        self.calls = []
        self.next_id = 0

    def _check_number(self, number, row_id=None):
        if any(r['job_number'] == number and i != row_id for i, r in self.rows.items()):
            raise Exception("duplicate key value violates unique constraint")

    def delete(self, cur, table, filters):
        self.calls.append(('delete', filters['id']))
        return 1 if self.rows.pop(filters['id'], None) else 0

    def update(self, cur, table, values, filters):
        row_id = filters['id']
        if 'job_number' in values:
            self._check_number(values['job_number'], row_id)
        self.calls.append(('update', row_id))
        self.rows[row_id].update(values)
        return [dict(self.rows[row_id])]

    def insert(self, cur, table, values):
        self._check_number(values['job_number'])
        self.next_id += 1
        row = dict(values, id=f"new{self.next_id}")
        self.calls.append(('insert', values['job_number']))
        self.rows[row['id']] = row
        return dict(row)

    def titles_by_number(self):
        return {r['job_number']: r['title'] for r in self.rows.values()}


REPORT = {'id': 'r1', 'jurisdiction_id': 'j1'}

STORED_JOBS = [
    {'id': 'a', 'job_number': 1, 'title': 'Clerk', 'points': 100, 'exceptional_service_category': None},
    {'id': 'b', 'job_number': 2, 'title': 'Driver', 'points': 150, 'exceptional_service_category': None},
    {'id': 'c', 'job_number': 3, 'title': 'Cook', 'points': 90, 'exceptional_service_category': None},
]


@pytest.fixture
def job_table(mock_conn):
    table = FakeJobTable(STORED_JOBS)
    with patch('pay_equity_data.get_job_classifications',
               side_effect=lambda report_id: [dict(r) for r in table.rows.values()]), \
            patch('pay_equity_data._delete', side_effect=table.delete), \
            patch('pay_equity_data._update', side_effect=table.update), \
            patch('pay_equity_data._insert', side_effect=table.insert), \
            patch('pay_equity_data.log_audit') as audit:
        table.conn = mock_conn
        table.audit = audit
        yield table


def test_save_job_classifications_reuses_deleted_job_number(job_table):
    counts = pay_equity_data.save_job_classifications(REPORT, [
        {'id': 'a', 'job_number': 1, 'title': 'Senior Clerk', 'points': 100},
        {'id': 'b', 'job_number': 2, 'title': 'Driver', 'points': 150},
        {'id': None, 'job_number': 3, 'title': 'Planner', 'points': 300},
    ])

    assert counts == {'inserted': 1, 'updated': 1, 'deleted': 1}
    assert job_table.calls == [('delete', 'c'), ('update', 'a'), ('insert', 3)]
    assert job_table.titles_by_number() == {1: 'Senior Clerk', 2: 'Driver', 3: 'Planner'}
    job_table.conn.commit.assert_called_once()
    assert job_table.audit.call_count == 3


def test_save_job_classifications_swaps_job_numbers(job_table):
    pay_equity_data.save_job_classifications(REPORT, [
        {'id': 'a', 'job_number': 2, 'title': 'Clerk'},
        {'id': 'b', 'job_number': 1, 'title': 'Driver'},
        {'id': 'c', 'job_number': 3, 'title': 'Cook'},
    ])

    assert job_table.titles_by_number() == {1: 'Driver', 2: 'Clerk', 3: 'Cook'}
    job_table.conn.commit.assert_called_once()


def test_save_job_classifications_rolls_back_on_failure(job_table):
    with pytest.raises(DataAccessError, match="duplicate key"):
        pay_equity_data.save_job_classifications(REPORT, [
            {'id': 'a', 'job_number': 1, 'title': 'Senior Clerk'},
            {'id': 'b', 'job_number': 2, 'title': 'Driver'},
            {'id': None, 'job_number': 2, 'title': 'Second Driver'},
        ])

    job_table.conn.rollback.assert_called_once()
    job_table.conn.commit.assert_not_called()
    job_table.audit.assert_not_called()


def test_save_job_classifications_treats_blank_as_null(job_table):
    counts = pay_equity_data.save_job_classifications(REPORT, [
        dict(job, exceptional_service_category='') for job in STORED_JOBS
    ])

    assert counts == {'inserted': 0, 'updated': 0, 'deleted': 0}
    assert job_table.calls == []


@patch('pay_equity_data.log_audit')
@patch('pay_equity_data.update_rows')
@patch('pay_equity_data.get_jurisdiction')
def test_update_jurisdiction_audits_old_values(mock_get, mock_update, mock_audit):
    mock_get.return_value = {'id': 'j1', 'approval_status': 'pending', 'name': 'Anoka'}
    mock_update.return_value = [{'id': 'j1', 'approval_status': 'approved'}]

    updated = pay_equity_data.update_jurisdiction('j1', {'approval_status': 'approved'}, 'admin@example.gov')

    assert updated['approval_status'] == 'approved'
    kwargs = mock_audit.call_args[1]
    assert kwargs['old_values'] == {'approval_status': 'pending'}
    assert kwargs['new_values'] == {'approval_status': 'approved'}
    assert kwargs['user_email'] == 'admin@example.gov'
