"""
PDF rendering of the pay equity compliance report.
"""
import io
import logging
import os
import re
from datetime import datetime

from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from compliance_analysis import ComplianceResult, compliance_status_label

logger = logging.getLogger(__name__)

LEFT = 15
TOP = 35
BOTTOM = 50
TEXT_WIDTH = 560


class NumberedCanvas(canvas.Canvas):
    """Canvas that stamps 'Page X of Y' once the page count is known"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_page_number(total)
            super().showPage()
        super().save()

    def draw_page_number(self, total):
        width, _ = self._pagesize
        self.setFont('Helvetica', 8)
        self.drawCentredString(width / 2, 20, f"Page {self._pageNumber} of {total}")


class ReportWriter:
    """Top-down text cursor over a reportlab canvas"""

    def __init__(self, c, pagesize=letter):
        self.c = c
        self.width, self.height = pagesize
        self.y = self.height - TOP

    def new_page(self):
        self.c.showPage()
        self.y = self.height - TOP

    def ensure_space(self, needed: float):
        if self.y - needed < BOTTOM:
            self.new_page()

    def text(self, value: str, size: int = 10, bold: bool = False, advance: float = 12):
        self.ensure_space(advance)
        self.c.setFont('Helvetica-Bold' if bold else 'Helvetica', size)
        self.c.drawString(LEFT, self.y, value)
        self.y -= advance

    def wrapped(self, value: str, size: int = 10, leading: float = 12):
        font = 'Helvetica'
        line = ''
        for word in (value or '').split():
            candidate = (line + ' ' + word).strip()
            if self.c.stringWidth(candidate, font, size) <= TEXT_WIDTH:
                line = candidate
            else:
                if line:
                    self.text(line, size=size, advance=leading)
                line = word
        if line:
            self.text(line, size=size, advance=leading)

    def gap(self, amount: float):
        self.y -= amount


def format_currency(value) -> str:
    if value is None:
        return "$0"
    return f"${float(value):,.0f}"


def format_number(value, decimals: int = 2) -> str:
    if value is None:
        return "0"
    return f"{float(value):,.{decimals}f}"


def format_percent(ratio, decimals: int = 2) -> str:
    """Format a 0-1 ratio as a percentage"""
    return f"{float(ratio) * 100:.{decimals}f}%"


def report_filename(jurisdiction: dict, report: dict) -> str:
    name = re.sub(r'[\\/:*?"<>|]+', '', jurisdiction.get('name', 'Jurisdiction')).strip()
    return f"{name}_{report['report_year']}_Compliance_Report.pdf"


def add_logo(c, path: str, x: float, y: float, height: float = 36) -> bool:
    """Draw the agency logo with its top-left corner at (x, y)"""
    if not path or not os.path.exists(path):
        logger.warning(f"Logo not found at {path}, skipping")
        return False
    try:
        image = ImageReader(path)
        img_width, img_height = image.getSize()
        width = height * img_width / img_height
        c.drawImage(image, x, y - height, width=width, height=height, mask='auto')
        return True
    except Exception as e:
        logger.warning(f"Error drawing logo {path}: {str(e)}")
        return False


def _section(writer: ReportWriter, title: str, space: float = 100):
    writer.ensure_space(space)
    writer.text(title, bold=True, advance=15)


def build_compliance_report_pdf(report: dict, jurisdiction: dict, jobs: list,
                                result: ComplianceResult, logo_path: str = None,
                                generated: datetime = None) -> bytes:
    """Lay out the compliance report and return the PDF bytes"""
    buf = io.BytesIO()
    c = NumberedCanvas(buf, pagesize=letter)
    c.setTitle(f"{jurisdiction.get('name', '')} {report['report_year']} Pay Equity Compliance Report")
    writer = ReportWriter(c)
    generated = generated or datetime.now()

    if logo_path and add_logo(c, logo_path, LEFT, writer.y + 10):
        writer.gap(40)

    writer.text("PAY EQUITY COMPLIANCE REPORT", size=18, bold=True, advance=20)
    writer.text(jurisdiction.get('name', ''), size=11, bold=True, advance=15)
    writer.text(f"Report Year: {report['report_year']}")
    writer.text(f"Case: {report.get('case_number', '')} - {report.get('case_description') or ''}")
    writer.text(f"Generated: {generated.strftime('%m/%d/%Y')}", advance=25)

    _section(writer, "JURISDICTION INFORMATION")
    writer.text(f"Name: {jurisdiction.get('name', '')}")
    writer.text(f"Type: {jurisdiction.get('jurisdiction_type') or ''}")
    writer.text(f"Address: {jurisdiction.get('address') or ''}")
    writer.text(f"City: {jurisdiction.get('city') or ''}, {jurisdiction.get('state') or ''} "
                f"{jurisdiction.get('zipcode') or ''}")
    writer.text(f"Phone: {jurisdiction.get('phone') or ''}", advance=25)

    _section(writer, "COMPLIANCE SUMMARY")
    writer.text(f"Status: {compliance_status_label(result)}")
    writer.text(f"Total Job Classes: {result.total_jobs}")
    writer.text(f"Male-Dominated Classes: {result.male_jobs}")
    writer.text(f"Female-Dominated Classes: {result.female_jobs}")
    writer.text(f"Balanced Classes: {result.balanced_jobs}", advance=15)
    writer.wrapped(result.message)
    writer.gap(15)

    if result.underpayment_test:
        test = result.underpayment_test
        _section(writer, "STATISTICAL ANALYSIS TEST (II)")
        writer.text(f"Status: {'PASSED' if result.statistical_test_passed else 'FAILED'}")
        writer.text(f"Underpayment Ratio: {format_percent(test.ratio)} "
                    f"(Threshold: {format_percent(test.threshold)})", advance=15)
        writer.text(f"Male Classes Below Predicted Pay: {test.male_below} of {test.male_total} "
                    f"({format_number(test.male_below_percent)}%)")
        writer.text(f"Female Classes Below Predicted Pay: {test.female_below} of {test.female_total} "
                    f"({format_number(test.female_below_percent)}%)", advance=15)
        if result.t_test:
            t = result.t_test
            writer.text(f"T-Test: DF = {t.degrees_of_freedom}, Value of T = {format_number(t.t_value, 3)}, "
                        f"Critical Value = {format_number(t.critical_value, 3)}")
            writer.text(f"Avg. difference from predicted pay, male classes: "
                        f"{format_currency(t.male_average_difference)}")
            writer.text(f"Avg. difference from predicted pay, female classes: "
                        f"{format_currency(t.female_average_difference)}")
        writer.gap(13)

    if not result.requires_manual_review and result.salary_range_test:
        test = result.salary_range_test
        _section(writer, "SALARY RANGE TEST (III)")
        writer.text(f"Status: {'PASSED' if test.passed else 'FAILED'}")
        writer.text(f"Threshold: {format_percent(test.threshold)}")
        writer.text(f"Result: {format_percent(test.ratio)}", advance=15)
        writer.text(f"Male Average Years to Max: {format_number(test.male_average)}")
        writer.text(f"Female Average Years to Max: {format_number(test.female_average)}", advance=25)

    if not result.requires_manual_review and result.exceptional_service_test:
        test = result.exceptional_service_test
        _section(writer, "EXCEPTIONAL SERVICE PAY TEST (IV)")
        writer.text(f"Status: {'PASSED' if test.passed else 'FAILED'}")
        writer.text(f"Threshold: {format_percent(test.threshold)}")
        writer.text(f"Result: {format_percent(test.ratio)}", advance=15)
        writer.text(f"Male Classes with Exceptional Service: {format_number(test.male_percentage)}%")
        writer.text(f"Female Classes with Exceptional Service: {format_number(test.female_percentage)}%",
                    advance=25)

    _section(writer, "JOB CLASSIFICATIONS", space=150)
    for job in jobs:
        writer.ensure_space(55)
        writer.text(f"Job #{job.get('job_number')}: {job.get('title', '')}", size=8, bold=True, advance=10)
        writer.text(f"  Males: {job.get('males', 0)} | Females: {job.get('females', 0)} | "
                    f"Points: {job.get('points', 0)}", size=8, advance=10)
        writer.text(f"  Salary Range: {format_currency(job.get('min_salary'))} - "
                    f"{format_currency(job.get('max_salary'))}", size=8, advance=10)
        writer.text(f"  Years to Max: {job.get('years_to_max', 0)} | "
                    f"Years Service Pay: {job.get('years_service_pay', 0)}", size=8, advance=10)
        writer.text(f"  Exceptional Service: {job.get('exceptional_service_category') or 'None'}",
                    size=8, advance=15)

    c.showPage()
    c.save()
    logger.info(f"Built compliance report PDF for report {report.get('id')}")
    return buf.getvalue()
