"""
Backend client for the pay equity database.
Wraps the Postgres connection pool with a small table query client
(select/insert/update/delete with equality filters) and the entity
helpers used by the pages.
"""
import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import psycopg2
from psycopg2 import pool, sql
from psycopg2.extras import Json, RealDictCursor

import config

# Set up logging
logger = logging.getLogger(__name__)

# Connection pool settings
min_connections = 1
max_connections = 20
connection_pool = None


class DataAccessError(Exception):
    """Raised when a backend query or mutation fails"""


TIMESTAMPS = ['created_at', 'updated_at']

TABLE_COLUMNS: Dict[str, List[str]] = {
    'jurisdictions': [
        'id', 'jurisdiction_id', 'name', 'address', 'city', 'state', 'zipcode',
        'phone', 'fax', 'jurisdiction_type', 'next_report_year', 'follow_up_type',
        'follow_up_date', 'approval_status', 'approved_by', 'approved_at',
        'rejection_reason', 'status_notes',
    ] + TIMESTAMPS,
    'contacts': [
        'id', 'jurisdiction_id', 'name', 'title', 'is_primary', 'email', 'phone',
    ] + TIMESTAMPS,
    'reports': [
        'id', 'jurisdiction_id', 'report_year', 'case_number', 'case_description',
        'case_status', 'compliance_status', 'submitted_at',
        'alternative_analysis_notes', 'significant_changes_explanation',
        'requires_manual_review',
    ] + TIMESTAMPS,
    'job_classifications': [
        'id', 'report_id', 'job_number', 'title', 'males', 'females', 'nonbinary',
        'points', 'min_salary', 'max_salary', 'years_to_max', 'years_service_pay',
        'exceptional_service_category', 'benefits_included_in_salary',
        'is_part_time', 'hours_per_week', 'days_per_year',
        'additional_cash_compensation',
    ] + TIMESTAMPS,
    'implementation_reports': [
        'id', 'report_id', 'evaluation_system', 'evaluation_description',
        'health_benefits_evaluated', 'health_benefits_description',
        'notice_location', 'approved_by_body', 'chief_elected_official',
        'official_title', 'approval_confirmed', 'total_payroll',
    ] + TIMESTAMPS,
    'submission_checklists': [
        'id', 'report_id', 'job_evaluation_complete', 'jobs_data_entered',
        'benefits_evaluated', 'compliance_reviewed', 'implementation_form_complete',
        'governing_body_approved', 'total_payroll_entered', 'official_notice_posted',
        'all_validations_passed', 'completed_at',
    ] + TIMESTAMPS,
    'audit_logs': [
        'id', 'jurisdiction_id', 'report_id', 'action_type', 'table_name',
        'record_id', 'old_values', 'new_values', 'user_email', 'created_at',
    ],
    'benefits_worksheets': [
        'id', 'report_id', 'lowest_points', 'highest_points', 'point_range',
        'comparable_value_range', 'trigger_detected', 'trigger_explanation',
        'benefits_data',
    ] + TIMESTAMPS,
    'email_templates': [
        'id', 'name', 'type', 'subject', 'body', 'is_active',
    ] + TIMESTAMPS,
    'email_logs': [
        'id', 'email_type', 'report_year', 'jurisdiction_id', 'recipient_email',
        'recipient_name', 'subject', 'body', 'sent_at', 'sent_by',
        'delivery_status', 'error_message', 'created_at',
    ],
    'email_drafts': [
        'id', 'email_type', 'report_year', 'subject', 'body',
        'selected_jurisdictions', 'created_by',
    ] + TIMESTAMPS,
    'notes': [
        'id', 'jurisdiction_id', 'title', 'content',
    ] + TIMESTAMPS,
    'jurisdiction_status_history': [
        'id', 'jurisdiction_id', 'old_status', 'new_status', 'changed_by',
        'reason', 'notes', 'created_at',
    ],
    'user_profiles': [
        'id', 'email', 'jurisdiction_id', 'role', 'created_at',
    ],
}

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS jurisdictions (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        jurisdiction_id VARCHAR(20) NOT NULL UNIQUE,
        name TEXT NOT NULL,
        address TEXT DEFAULT '',
        city TEXT DEFAULT '',
        state VARCHAR(2) DEFAULT 'MN',
        zipcode VARCHAR(10) DEFAULT '',
        phone VARCHAR(30) DEFAULT '',
        fax VARCHAR(30) DEFAULT '',
        jurisdiction_type VARCHAR(50) DEFAULT '',
        next_report_year INTEGER,
        follow_up_type VARCHAR(50) DEFAULT '',
        follow_up_date DATE,
        approval_status VARCHAR(20) NOT NULL DEFAULT 'pending'
            CHECK (approval_status IN ('pending', 'approved', 'rejected')),
        approved_by TEXT,
        approved_at TIMESTAMPTZ,
        rejection_reason TEXT,
        status_notes TEXT,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS contacts (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        jurisdiction_id UUID NOT NULL REFERENCES jurisdictions(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        title TEXT DEFAULT '',
        is_primary BOOLEAN DEFAULT false,
        email TEXT DEFAULT '',
        phone VARCHAR(30) DEFAULT '',
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS reports (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        jurisdiction_id UUID NOT NULL REFERENCES jurisdictions(id) ON DELETE CASCADE,
        report_year INTEGER NOT NULL,
        case_number INTEGER NOT NULL DEFAULT 1,
        case_description TEXT DEFAULT '',
        case_status VARCHAR(30) NOT NULL DEFAULT 'Private'
            CHECK (case_status IN ('Private', 'Shared', 'Submitted',
                                   'In Compliance', 'Out of Compliance')),
        compliance_status VARCHAR(50) DEFAULT '',
        submitted_at TIMESTAMPTZ,
        alternative_analysis_notes TEXT,
        significant_changes_explanation TEXT,
        requires_manual_review BOOLEAN DEFAULT false,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (jurisdiction_id, report_year, case_number)
    );

    CREATE TABLE IF NOT EXISTS job_classifications (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        report_id UUID NOT NULL REFERENCES reports(id) ON DELETE CASCADE,
        job_number INTEGER NOT NULL,
        title TEXT NOT NULL,
        males INTEGER DEFAULT 0,
        females INTEGER DEFAULT 0,
        nonbinary INTEGER DEFAULT 0,
        points INTEGER DEFAULT 0,
        min_salary DOUBLE PRECISION DEFAULT 0,
        max_salary DOUBLE PRECISION DEFAULT 0,
        years_to_max DOUBLE PRECISION DEFAULT 0,
        years_service_pay DOUBLE PRECISION DEFAULT 0,
        exceptional_service_category TEXT DEFAULT '',
        benefits_included_in_salary DOUBLE PRECISION DEFAULT 0,
        is_part_time BOOLEAN DEFAULT false,
        hours_per_week DOUBLE PRECISION,
        days_per_year INTEGER,
        additional_cash_compensation DOUBLE PRECISION DEFAULT 0,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (report_id, job_number)
    );

    CREATE TABLE IF NOT EXISTS implementation_reports (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        report_id UUID NOT NULL UNIQUE REFERENCES reports(id) ON DELETE CASCADE,
        evaluation_system TEXT DEFAULT '',
        evaluation_description TEXT DEFAULT '',
        health_benefits_evaluated VARCHAR(20) DEFAULT '',
        health_benefits_description TEXT DEFAULT '',
        notice_location TEXT DEFAULT '',
        approved_by_body TEXT DEFAULT '',
        chief_elected_official TEXT DEFAULT '',
        official_title TEXT DEFAULT '',
        approval_confirmed BOOLEAN DEFAULT false,
        total_payroll DOUBLE PRECISION,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS submission_checklists (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        report_id UUID NOT NULL UNIQUE REFERENCES reports(id) ON DELETE CASCADE,
        job_evaluation_complete BOOLEAN DEFAULT false,
        jobs_data_entered BOOLEAN DEFAULT false,
        benefits_evaluated BOOLEAN DEFAULT false,
        compliance_reviewed BOOLEAN DEFAULT false,
        implementation_form_complete BOOLEAN DEFAULT false,
        governing_body_approved BOOLEAN DEFAULT false,
        total_payroll_entered BOOLEAN DEFAULT false,
        official_notice_posted BOOLEAN DEFAULT false,
        all_validations_passed BOOLEAN DEFAULT false,
        completed_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS audit_logs (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        jurisdiction_id UUID,
        report_id UUID,
        action_type VARCHAR(20) NOT NULL,
        table_name VARCHAR(50) NOT NULL,
        record_id UUID,
        old_values JSONB,
        new_values JSONB,
        user_email TEXT,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS benefits_worksheets (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        report_id UUID NOT NULL UNIQUE REFERENCES reports(id) ON DELETE CASCADE,
        lowest_points INTEGER DEFAULT 0,
        highest_points INTEGER DEFAULT 0,
        point_range INTEGER DEFAULT 0,
        comparable_value_range DOUBLE PRECISION DEFAULT 0,
        trigger_detected BOOLEAN DEFAULT false,
        trigger_explanation TEXT,
        benefits_data JSONB,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS email_templates (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name TEXT NOT NULL,
        type VARCHAR(30) NOT NULL
            CHECK (type IN ('announcement', 'fail_to_report',
                            'jurisdiction_approved', 'jurisdiction_rejected')),
        subject TEXT NOT NULL,
        body TEXT NOT NULL,
        is_active BOOLEAN DEFAULT true,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS email_logs (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        email_type VARCHAR(30) NOT NULL,
        report_year INTEGER,
        jurisdiction_id UUID REFERENCES jurisdictions(id) ON DELETE SET NULL,
        recipient_email TEXT DEFAULT '',
        recipient_name TEXT DEFAULT '',
        subject TEXT DEFAULT '',
        body TEXT DEFAULT '',
        sent_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        sent_by TEXT,
        delivery_status VARCHAR(10) DEFAULT 'sent'
            CHECK (delivery_status IN ('sent', 'failed', 'pending')),
        error_message TEXT,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS email_drafts (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        email_type VARCHAR(30) NOT NULL,
        report_year INTEGER,
        subject TEXT DEFAULT '',
        body TEXT DEFAULT '',
        selected_jurisdictions TEXT[] DEFAULT '{}',
        created_by TEXT,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS notes (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        jurisdiction_id UUID NOT NULL REFERENCES jurisdictions(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        content TEXT DEFAULT '',
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS jurisdiction_status_history (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        jurisdiction_id UUID NOT NULL REFERENCES jurisdictions(id) ON DELETE CASCADE,
        old_status VARCHAR(20),
        new_status VARCHAR(20) NOT NULL,
        changed_by TEXT,
        reason TEXT,
        notes TEXT,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS user_profiles (
        id UUID PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        jurisdiction_id UUID REFERENCES jurisdictions(id) ON DELETE SET NULL,
        role VARCHAR(20) NOT NULL DEFAULT 'jurisdiction'
            CHECK (role IN ('admin', 'jurisdiction')),
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    );
"""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def init_connection_pool():
    """Initialize the database connection pool with proper validation"""
    global connection_pool
    try:
        if not config.DATABASE_URL:
            raise KeyError('DATABASE_URL')
        url = urlparse(config.DATABASE_URL)
        logger.info("Initializing database connection pool...")

        connection_pool = pool.SimpleConnectionPool(
            min_connections,
            max_connections,
            user=url.username,
            password=url.password,
            host=url.hostname,
            port=url.port or 5432,
            database=url.path[1:],  # Remove leading slash
        )

        # Validate pool by testing a connection
        test_conn = connection_pool.getconn()
        if test_conn:
            try:
                cur = test_conn.cursor()
                cur.execute('SELECT 1')
                cur.close()
                logger.info("Database connection pool initialized and validated successfully")
            finally:
                connection_pool.putconn(test_conn)
        return True
    except Exception as e:
        logger.error(f"Error initializing connection pool: {str(e)}")
        connection_pool = None
        return False


def get_db_connection(max_retries: int = 3, retry_delay: int = 1) -> Optional[psycopg2.extensions.connection]:
    """Get a database connection, retrying when the pooled connection is unusable"""
    global connection_pool

    if connection_pool is None:
        if not init_connection_pool():
            logger.error("Failed to initialize connection pool")
            return None

    for attempt in range(max_retries):
        try:
            conn = connection_pool.getconn()
            if conn and not conn.closed:
                cur = conn.cursor()
                cur.execute('SELECT 1')
                cur.close()
                return conn
            if conn:
                try:
                    connection_pool.putconn(conn, close=True)
                except Exception as e:
                    logger.error(f"Error returning connection to pool: {str(e)}")
        except Exception as e:
            logger.error(f"Connection attempt {attempt + 1} failed: {str(e)}")
            if attempt < max_retries - 1:
                logger.info(f"Retrying in {retry_delay} seconds...")
                time.sleep(retry_delay)
    logger.error("All connection attempts failed")
    return None


def return_db_connection(conn):
    """Return a connection to the pool"""
    if connection_pool and conn and not conn.closed:
        try:
            connection_pool.putconn(conn)
        except Exception as e:
            logger.error(f"Error returning connection to pool: {str(e)}")
            conn.close()


@contextmanager
def db_cursor(commit: bool = False):
    """Yield a dict cursor; commits on success when asked, rolls back on error"""
    conn = get_db_connection()
    if conn is None:
        raise DataAccessError("Unable to connect to the database. Please try again later.")
    cur = conn.cursor(cursor_factory=RealDictCursor)
    try:
        yield cur
        if commit:
            conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        return_db_connection(conn)


def initialize_database():
    """Create every table used by the application"""
    try:
        with db_cursor(commit=True) as cur:
            cur.execute(SCHEMA_SQL)
        logger.info("Database schema initialized successfully")
    except Exception as e:
        logger.error(f"Error initializing database: {str(e)}")
        raise DataAccessError(f"Error initializing database: {str(e)}") from e


# ---------- Generic table client ----------

def _check_columns(table: str, columns) -> None:
    if table not in TABLE_COLUMNS:
        raise ValueError(f"Unknown table: {table}")
    unknown = [c for c in columns if c not in TABLE_COLUMNS[table]]
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")


def _adapt(value: Any) -> Any:
    if isinstance(value, dict):
        return Json(value, dumps=lambda v: json.dumps(v, default=str))
    return value


def _where(filters: Optional[Dict[str, Any]]):
    if not filters:
        return sql.SQL(""), []
    parts = []
    params = []
    for column, value in filters.items():
        if value is None:
            parts.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
        elif isinstance(value, (list, tuple, set)):
            parts.append(sql.SQL("{} = ANY(%s)").format(sql.Identifier(column)))
            params.append(list(value))
        else:
            parts.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
            params.append(value)
    return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(parts), params


def select_rows(table: str, filters: Optional[Dict[str, Any]] = None,
                order_by: Optional[str] = None, descending: bool = False,
                limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Select rows matching every equality filter"""
    _check_columns(table, list(filters or {}) + ([order_by] if order_by else []))
    where, params = _where(filters)
    query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(table)) + where
    if order_by:
        query += sql.SQL(" ORDER BY {} {}").format(
            sql.Identifier(order_by), sql.SQL("DESC" if descending else "ASC"))
    if limit:
        query += sql.SQL(" LIMIT %s")
        params.append(limit)
    try:
        with db_cursor() as cur:
            cur.execute(query, params)
            return [dict(row) for row in cur.fetchall()]
    except DataAccessError:
        raise
    except Exception as e:
        logger.error(f"Error selecting from {table}: {str(e)}")
        raise DataAccessError(f"Error loading {table.replace('_', ' ')}: {str(e)}") from e


def select_one(table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the first matching row or None"""
    rows = select_rows(table, filters, limit=1)
    return rows[0] if rows else None


def _insert(cur, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
    _check_columns(table, values)
    if not values:
        raise ValueError("Nothing to insert")
    columns = list(values)
    query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
        sql.Identifier(table),
        sql.SQL(", ").join(sql.Identifier(c) for c in columns),
        sql.SQL(", ").join(sql.Placeholder() for _ in columns),
    )
    cur.execute(query, [_adapt(values[c]) for c in columns])
    return dict(cur.fetchone())


def _update(cur, table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
    if not filters:
        raise ValueError("Refusing to update without filters")
    values = dict(values)
    if 'updated_at' in TABLE_COLUMNS.get(table, []) and 'updated_at' not in values:
        values['updated_at'] = utc_now()
    _check_columns(table, list(values) + list(filters))
    where, where_params = _where(filters)
    assignments = sql.SQL(", ").join(
        sql.SQL("{} = %s").format(sql.Identifier(c)) for c in values)
    query = sql.SQL("UPDATE {} SET ").format(sql.Identifier(table)) + assignments + where + sql.SQL(" RETURNING *")
    cur.execute(query, [_adapt(v) for v in values.values()] + where_params)
    return [dict(row) for row in cur.fetchall()]


def _delete(cur, table: str, filters: Dict[str, Any]) -> int:
    if not filters:
        raise ValueError("Refusing to delete without filters")
    _check_columns(table, filters)
    where, params = _where(filters)
    cur.execute(sql.SQL("DELETE FROM {}").format(sql.Identifier(table)) + where, params)
    return cur.rowcount


def insert_row(table: str, values: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a row and return it as stored"""
    _check_columns(table, values)
    if not values:
        raise ValueError("Nothing to insert")
    try:
        with db_cursor(commit=True) as cur:
            return _insert(cur, table, values)
    except DataAccessError:
        raise
    except Exception as e:
        logger.error(f"Error inserting into {table}: {str(e)}")
        raise DataAccessError(f"Error saving {table.replace('_', ' ')}: {str(e)}") from e


def update_rows(table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Update matching rows and return them"""
    if not filters:
        raise ValueError("Refusing to update without filters")
    _check_columns(table, list(values) + list(filters))
    try:
        with db_cursor(commit=True) as cur:
            return _update(cur, table, values, filters)
    except DataAccessError:
        raise
    except Exception as e:
        logger.error(f"Error updating {table}: {str(e)}")
        raise DataAccessError(f"Error updating {table.replace('_', ' ')}: {str(e)}") from e


def delete_rows(table: str, filters: Dict[str, Any]) -> int:
    """Delete matching rows and return how many were removed"""
    if not filters:
        raise ValueError("Refusing to delete without filters")
    _check_columns(table, filters)
    try:
        with db_cursor(commit=True) as cur:
            return _delete(cur, table, filters)
    except DataAccessError:
        raise
    except Exception as e:
        logger.error(f"Error deleting from {table}: {str(e)}")
        raise DataAccessError(f"Error deleting {table.replace('_', ' ')}: {str(e)}") from e


# ---------- Audit log ----------

def log_audit(action_type: str, table_name: str, record_id: Optional[str] = None,
              jurisdiction_id: Optional[str] = None, report_id: Optional[str] = None,
              old_values: Optional[Dict] = None, new_values: Optional[Dict] = None,
              user_email: Optional[str] = None):
    """Record a mutation in the audit log"""
    try:
        insert_row('audit_logs', {
            'action_type': action_type,
            'table_name': table_name,
            'record_id': record_id,
            'jurisdiction_id': jurisdiction_id,
            'report_id': report_id,
            'old_values': old_values,
            'new_values': new_values,
            'user_email': user_email,
        })
    except Exception as e:
        logger.error(f"Error adding audit log: {str(e)}")


def get_audit_logs(jurisdiction_id: Optional[str] = None, limit: int = 50):
    filters = {'jurisdiction_id': jurisdiction_id} if jurisdiction_id else None
    return select_rows('audit_logs', filters, order_by='created_at', descending=True, limit=limit)


# ---------- Jurisdictions & contacts ----------

def get_jurisdictions():
    """Get all jurisdictions ordered by name"""
    return select_rows('jurisdictions', order_by='name')


def get_jurisdiction(jurisdiction_pk: str):
    return select_one('jurisdictions', {'id': jurisdiction_pk})


def get_jurisdiction_by_code(code: str):
    """Look up a jurisdiction by its public Jurisdiction ID"""
    return select_one('jurisdictions', {'jurisdiction_id': code.strip()})


def search_jurisdictions(term: str = '', jurisdiction_type: Optional[str] = None):
    """Search jurisdictions by name, Jurisdiction ID or city"""
    query = "SELECT * FROM jurisdictions WHERE 1=1"
    params = []
    if term:
        query += " AND (name ILIKE %s OR jurisdiction_id ILIKE %s OR city ILIKE %s)"
        search_term = f"%{term.strip()}%"
        params.extend([search_term, search_term, search_term])
    if jurisdiction_type:
        query += " AND jurisdiction_type = %s"
        params.append(jurisdiction_type)
    query += " ORDER BY name"
    try:
        with db_cursor() as cur:
            cur.execute(query, params)
            return [dict(row) for row in cur.fetchall()]
    except DataAccessError:
        raise
    except Exception as e:
        logger.error(f"Error searching jurisdictions: {str(e)}")
        raise DataAccessError(f"Error searching jurisdictions: {str(e)}") from e


def update_jurisdiction(jurisdiction_pk: str, values: Dict[str, Any], user_email: Optional[str] = None):
    """Update a jurisdiction and audit the change"""
    old = get_jurisdiction(jurisdiction_pk)
    rows = update_rows('jurisdictions', values, {'id': jurisdiction_pk})
    if not rows:
        raise DataAccessError("Jurisdiction not found")
    log_audit('update', 'jurisdictions', jurisdiction_pk, jurisdiction_id=jurisdiction_pk,
              old_values=_subset(old, values), new_values=values, user_email=user_email)
    return rows[0]


def get_primary_contact(jurisdiction_pk: str):
    return select_one('contacts', {'jurisdiction_id': jurisdiction_pk, 'is_primary': True})


def get_contacts(jurisdiction_pk: str):
    return select_rows('contacts', {'jurisdiction_id': jurisdiction_pk}, order_by='name')


def get_status_history(jurisdiction_pk: str):
    """Status changes for a jurisdiction, newest first"""
    return select_rows('jurisdiction_status_history', {'jurisdiction_id': jurisdiction_pk},
                       order_by='created_at', descending=True)


def add_status_history(jurisdiction_pk: str, old_status: Optional[str], new_status: str,
                       changed_by: Optional[str], reason: Optional[str] = None,
                       notes: Optional[str] = None):
    return insert_row('jurisdiction_status_history', {
        'jurisdiction_id': jurisdiction_pk,
        'old_status': old_status,
        'new_status': new_status,
        'changed_by': changed_by,
        'reason': reason,
        'notes': notes,
    })


# ---------- Reports ----------

def get_reports(jurisdiction_pk: str):
    """Reports for a jurisdiction, most recent year first"""
    return select_rows('reports', {'jurisdiction_id': jurisdiction_pk},
                       order_by='report_year', descending=True)


def get_report(report_id: str):
    return select_one('reports', {'id': report_id})


def get_reports_for_year(report_year: int):
    return select_rows('reports', {'report_year': report_year})


def create_report(jurisdiction_pk: str, report_year: int, case_description: str = '',
                  user_email: Optional[str] = None):
    """Create a report with the next case number for the jurisdiction and year"""
    existing = select_rows('reports', {'jurisdiction_id': jurisdiction_pk, 'report_year': report_year})
    case_number = max((r['case_number'] for r in existing), default=0) + 1
    report = insert_row('reports', {
        'jurisdiction_id': jurisdiction_pk,
        'report_year': report_year,
        'case_number': case_number,
        'case_description': case_description,
        'case_status': 'Private',
    })
    log_audit('insert', 'reports', report['id'], jurisdiction_id=jurisdiction_pk,
              report_id=report['id'], new_values=report, user_email=user_email)
    return report


def update_report(report: Dict[str, Any], values: Dict[str, Any], user_email: Optional[str] = None):
    rows = update_rows('reports', values, {'id': report['id']})
    if not rows:
        raise DataAccessError("Report not found")
    log_audit('update', 'reports', report['id'], jurisdiction_id=report['jurisdiction_id'],
              report_id=report['id'], old_values=_subset(report, values), new_values=values,
              user_email=user_email)
    return rows[0]


def get_report_status_summary(report_year: int):
    """Count reports by case status for a report year"""
    try:
        with db_cursor() as cur:
            cur.execute("""
                SELECT case_status, COUNT(*) AS reports
                FROM reports
                WHERE report_year = %s
                GROUP BY case_status
                ORDER BY case_status
            """, (report_year,))
            return [dict(row) for row in cur.fetchall()]
    except DataAccessError:
        raise
    except Exception as e:
        logger.error(f"Error getting report status summary: {str(e)}")
        raise DataAccessError(f"Error getting report status summary: {str(e)}") from e


# ---------- Job classifications ----------

JOB_FIELDS = [c for c in TABLE_COLUMNS['job_classifications']
              if c not in ('id', 'report_id', 'created_at', 'updated_at')]


def get_job_classifications(report_id: str):
    return select_rows('job_classifications', {'report_id': report_id}, order_by='job_number')


def _comparable(value):
    # The editor returns '' where the database holds NULL
    return None if value == '' else value


def save_job_classifications(report: Dict[str, Any], jobs: List[Dict[str, Any]],
                             user_email: Optional[str] = None) -> Dict[str, int]:
    """Apply an edited set of job classes in one transaction.

    Removed rows are deleted first, then changed rows are updated and new
    rows inserted, so a job number freed by a delete or a renumbering can be
    reused in the same save.
    """
    existing = {str(j['id']): j for j in get_job_classifications(report['id'])}
    updates = []
    inserts = []
    seen = set()

    for job in jobs:
        values = {k: job.get(k) for k in JOB_FIELDS if k in job}
        job_id = str(job['id']) if job.get('id') else None
        if job_id and job_id in existing:
            seen.add(job_id)
            old = existing[job_id]
            changed = {k: v for k, v in values.items() if _comparable(old.get(k)) != _comparable(v)}
            if changed:
                updates.append((job_id, old, changed))
        else:
            inserts.append(dict(values, report_id=report['id']))

    deletes = [(job_id, old) for job_id, old in existing.items() if job_id not in seen]
    audit = []
    try:
        with db_cursor(commit=True) as cur:
            for job_id, old in deletes:
                _delete(cur, 'job_classifications', {'id': job_id})
                audit.append(('delete', job_id, old, None))

            # Park renumbered rows on unused negative numbers so swaps don't collide
            renumbered = [u for u in updates if 'job_number' in u[2]]
            for n, (job_id, _, _) in enumerate(renumbered, start=1):
                _update(cur, 'job_classifications', {'job_number': -n}, {'id': job_id})

            for job_id, old, changed in updates:
                _update(cur, 'job_classifications', changed, {'id': job_id})
                audit.append(('update', job_id, _subset(old, changed), changed))

            for values in inserts:
                row = _insert(cur, 'job_classifications', values)
                audit.append(('insert', row['id'], None, values))
    except DataAccessError:
        raise
    except Exception as e:
        logger.error(f"Error saving job classes for report {report['id']}: {str(e)}")
        raise DataAccessError(f"Error saving job classes: {str(e)}") from e

    for action, job_id, old_values, new_values in audit:
        log_audit(action, 'job_classifications', job_id,
                  jurisdiction_id=report['jurisdiction_id'], report_id=report['id'],
                  old_values=old_values, new_values=new_values, user_email=user_email)

    counts = {'inserted': len(inserts), 'updated': len(updates), 'deleted': len(deletes)}
    logger.info(f"Saved job classes for report {report['id']}: {counts}")
    return counts


# ---------- Per-report forms ----------

def _get_by_report(table: str, report_id: str):
    return select_one(table, {'report_id': report_id})


def _upsert_by_report(table: str, report: Dict[str, Any], values: Dict[str, Any],
                      user_email: Optional[str] = None):
    existing = _get_by_report(table, report['id'])
    if existing:
        rows = update_rows(table, values, {'id': existing['id']})
        row = rows[0]
        log_audit('update', table, row['id'], jurisdiction_id=report['jurisdiction_id'],
                  report_id=report['id'], old_values=_subset(existing, values),
                  new_values=values, user_email=user_email)
    else:
        row = insert_row(table, dict(values, report_id=report['id']))
        log_audit('insert', table, row['id'], jurisdiction_id=report['jurisdiction_id'],
                  report_id=report['id'], new_values=values, user_email=user_email)
    return row


def get_implementation_report(report_id: str):
    return _get_by_report('implementation_reports', report_id)


def save_implementation_report(report, values, user_email=None):
    return _upsert_by_report('implementation_reports', report, values, user_email)


def get_submission_checklist(report_id: str):
    return _get_by_report('submission_checklists', report_id)


def save_submission_checklist(report, values, user_email=None):
    return _upsert_by_report('submission_checklists', report, values, user_email)


def get_benefits_worksheet(report_id: str):
    return _get_by_report('benefits_worksheets', report_id)


def save_benefits_worksheet(report, values, user_email=None):
    return _upsert_by_report('benefits_worksheets', report, values, user_email)


# ---------- Email ----------

def get_email_template(template_type: str):
    """The active template of a given type, if any"""
    return select_one('email_templates', {'type': template_type, 'is_active': True})


def get_email_templates():
    return select_rows('email_templates', order_by='name')


def log_email(values: Dict[str, Any]):
    return insert_row('email_logs', values)


def get_email_logs(limit: int = 50, email_type: Optional[str] = None):
    filters = {'email_type': email_type} if email_type else None
    return select_rows('email_logs', filters, order_by='sent_at', descending=True, limit=limit)


def save_email_draft(values: Dict[str, Any], draft_id: Optional[str] = None):
    if draft_id:
        rows = update_rows('email_drafts', values, {'id': draft_id})
        if rows:
            return rows[0]
    return insert_row('email_drafts', values)


def get_email_drafts(email_type: Optional[str] = None):
    filters = {'email_type': email_type} if email_type else None
    return select_rows('email_drafts', filters, order_by='updated_at', descending=True)


def delete_email_draft(draft_id: str):
    return delete_rows('email_drafts', {'id': draft_id})


# ---------- Notes ----------

def get_notes(jurisdiction_pk: str):
    return select_rows('notes', {'jurisdiction_id': jurisdiction_pk}, order_by='updated_at', descending=True)


def create_note(jurisdiction_pk: str, title: str, content: str, user_email: Optional[str] = None):
    note = insert_row('notes', {'jurisdiction_id': jurisdiction_pk, 'title': title, 'content': content})
    log_audit('insert', 'notes', note['id'], jurisdiction_id=jurisdiction_pk,
              new_values={'title': title, 'content': content}, user_email=user_email)
    return note


def update_note(note: Dict[str, Any], title: str, content: str, user_email: Optional[str] = None):
    values = {'title': title, 'content': content}
    rows = update_rows('notes', values, {'id': note['id']})
    log_audit('update', 'notes', note['id'], jurisdiction_id=note['jurisdiction_id'],
              old_values=_subset(note, values), new_values=values, user_email=user_email)
    return rows[0] if rows else None


def delete_note(note: Dict[str, Any], user_email: Optional[str] = None):
    deleted = delete_rows('notes', {'id': note['id']})
    log_audit('delete', 'notes', note['id'], jurisdiction_id=note['jurisdiction_id'],
              old_values={'title': note.get('title'), 'content': note.get('content')},
              user_email=user_email)
    return deleted


# ---------- User profiles ----------

def get_user_profile(user_id: str):
    return select_one('user_profiles', {'id': user_id})


def create_user_profile(user_id: str, email: str, jurisdiction_pk: Optional[str], role: str = 'jurisdiction'):
    return insert_row('user_profiles', {
        'id': user_id,
        'email': email,
        'jurisdiction_id': jurisdiction_pk,
        'role': role,
    })


def _subset(row: Optional[Dict[str, Any]], keys) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return {k: row.get(k) for k in keys}
