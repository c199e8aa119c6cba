"""Tests for the compliance report PDF"""
import io
import re
from datetime import datetime
from unittest.mock import patch

from reportlab.pdfgen import canvas

from compliance_analysis import analyze_compliance
from pdf_generator import (
    ReportWriter, build_compliance_report_pdf, format_currency, format_number, format_percent, report_filename,
)

JURISDICTION = {'id': 'j1', 'name': 'City of Anoka', 'jurisdiction_id': 'J100', 'jurisdiction_type': 'City',
                'address': '2015 1st Ave N', 'city': 'Anoka', 'state': 'MN', 'zipcode': '55303'}
REPORT = {'id': 'r1', 'report_year': 2025, 'case_number': 1, 'case_description': 'Annual report'}


def jobs(count):
    result = []
    for i in range(count):
        points = 100 + i * 25
        result.append({
            'job_number': i + 1,
            'title': f"Class {i + 1}",
            'males': 10 if i % 3 else 0,
            'females': 0 if i % 3 else 10,
            'points': points,
            'min_salary': 2500 + points * 5,
            'max_salary': 3000 + points * 8 + (75 if i % 2 else -75),
            'years_to_max': 6,
            'exceptional_service_category': '',
        })
    return result


def test_formatting_helpers():
    assert format_currency(1234.5) == "$1,234"
    assert format_currency(None) == "$0"
    assert format_number(3.14159, 3) == "3.142"
    assert format_percent(0.8) == "80.00%"


def test_report_filename_strips_invalid_characters():
    assert report_filename(JURISDICTION, REPORT) == "City of Anoka_2025_Compliance_Report.pdf"
    assert report_filename({'name': 'A/B: "Test"'}, REPORT) == "AB Test_2025_Compliance_Report.pdf"


def test_pdf_is_generated():
    job_list = jobs(12)
    result = analyze_compliance(job_list)
    pdf = build_compliance_report_pdf(REPORT, JURISDICTION, job_list, result,
                                      generated=datetime(2025, 1, 31))
    assert pdf.startswith(b'%PDF')
    assert len(pdf) > 1000


def test_long_report_paginates():
    job_list = jobs(60)
    pdf = build_compliance_report_pdf(REPORT, JURISDICTION, job_list, analyze_compliance(job_list))
    page_count = max(int(n) for n in re.findall(rb"/Count (\d+)", pdf))
    assert page_count >= 3


def test_missing_logo_is_skipped():
    pdf = build_compliance_report_pdf(REPORT, JURISDICTION, [], analyze_compliance([]),
                                      logo_path='does/not/exist.png')
    assert pdf.startswith(b'%PDF')


def test_wrapped_word_wider_than_page_draws_no_blank_line():
    writer = ReportWriter(canvas.Canvas(io.BytesIO()))
    long_word = 'W' * 200
    with patch.object(writer, 'text') as text:
        writer.wrapped(f"{long_word} end")
    assert [call.args[0] for call in text.call_args_list] == [long_word, 'end']
