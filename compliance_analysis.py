"""
Pay equity compliance tests.

Job classes are sorted into male-dominated, female-dominated and balanced
classes from their incumbent counts, then the jurisdiction is checked with:

  II.  Statistical analysis: the underpayment ratio, with the t-test as a
       second chance when the ratio falls short.
  III. Salary range test: male vs female average years to maximum salary.
  IV.  Exceptional service pay test: share of female vs male classes that
       receive exceptional service (longevity) pay.

Every ratio test passes at 80 percent.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

MALE_DOMINATED_SHARE = 0.80
FEMALE_DOMINATED_SHARE = 0.70
PASS_THRESHOLD = 0.80
MIN_MALE_CLASSES = 6
ESP_MINIMUM_MALE_PERCENT = 20.0

# One-tailed 5% critical values of Student's t by degrees of freedom
T_CRITICAL_VALUES = {
    1: 6.314, 2: 2.920, 3: 2.353, 4: 2.132, 5: 2.015, 6: 1.943, 7: 1.895,
    8: 1.860, 9: 1.833, 10: 1.812, 11: 1.796, 12: 1.782, 13: 1.771, 14: 1.761,
    15: 1.753, 16: 1.746, 17: 1.740, 18: 1.734, 19: 1.729, 20: 1.725, 21: 1.721,
    22: 1.717, 23: 1.714, 24: 1.711, 25: 1.708, 26: 1.706, 27: 1.703, 28: 1.701,
    29: 1.699, 30: 1.697, 40: 1.684, 60: 1.671, 120: 1.658,
}
T_CRITICAL_INFINITE = 1.645

NO_ESP_VALUES = {'', 'none', 'n/a', 'na', 'no'}


@dataclass
class PredictedPayLine:
    slope: float
    intercept: float

    def predict(self, points):
        return self.intercept + self.slope * points


@dataclass
class UnderpaymentRatioTest:
    passed: bool
    threshold: float
    ratio: float
    male_below: int
    male_total: int
    female_below: int
    female_total: int
    male_below_percent: float
    female_below_percent: float


@dataclass
class TTestResult:
    passed: bool
    degrees_of_freedom: int
    t_value: float
    critical_value: float
    male_average_difference: float
    female_average_difference: float


@dataclass
class SalaryRangeTest:
    passed: bool
    threshold: float
    ratio: float
    male_average: float
    female_average: float


@dataclass
class ExceptionalServiceTest:
    passed: bool
    threshold: float
    ratio: float
    male_percentage: float
    female_percentage: float


@dataclass
class JobResult:
    job_number: int
    title: str
    classification: str
    points: float
    pay: float
    predicted_pay: Optional[float] = None
    difference: Optional[float] = None
    below_predicted: Optional[bool] = None


@dataclass
class ComplianceResult:
    is_compliant: bool
    requires_manual_review: bool
    total_jobs: int
    male_jobs: int
    female_jobs: int
    balanced_jobs: int
    message: str
    pay_line: Optional[PredictedPayLine] = None
    underpayment_test: Optional[UnderpaymentRatioTest] = None
    t_test: Optional[TTestResult] = None
    statistical_test_passed: Optional[bool] = None
    salary_range_test: Optional[SalaryRangeTest] = None
    exceptional_service_test: Optional[ExceptionalServiceTest] = None
    job_results: List[JobResult] = field(default_factory=list)


def to_number(value, default=0.0) -> float:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


def classify_job(job) -> str:
    """Return 'male', 'female' or 'balanced' for a job class"""
    males = to_number(job.get('males'))
    females = to_number(job.get('females'))
    nonbinary = to_number(job.get('nonbinary'))
    total = males + females + nonbinary
    if total <= 0:
        return 'balanced'
    if males / total > MALE_DOMINATED_SHARE:
        return 'male'
    if females / total > FEMALE_DOMINATED_SHARE:
        return 'female'
    return 'balanced'


def comparison_pay(job) -> float:
    """Maximum monthly pay plus additional cash compensation"""
    return to_number(job.get('max_salary')) + to_number(job.get('additional_cash_compensation'))


def has_exceptional_service_pay(job) -> bool:
    category = job.get('exceptional_service_category')
    if category is None or (isinstance(category, float) and math.isnan(category)):
        return False
    return str(category).strip().lower() not in NO_ESP_VALUES


def jobs_frame(jobs: Iterable[dict]) -> pd.DataFrame:
    """Build the analysis frame: one row per job class with derived columns"""
    records = [dict(j) for j in jobs]
    columns = ['job_number', 'title', 'points', 'years_to_max', 'classification', 'pay', 'has_esp']
    if not records:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(records)
    for col in ['job_number', 'points', 'years_to_max']:
        if col not in df.columns:
            df[col] = 0
        df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0)
    if 'title' not in df.columns:
        df['title'] = ''
    df['classification'] = [classify_job(j) for j in records]
    df['pay'] = [comparison_pay(j) for j in records]
    df['has_esp'] = [has_exceptional_service_pay(j) for j in records]
    return df


def fit_predicted_pay_line(male_df: pd.DataFrame) -> PredictedPayLine:
    """Least-squares line of pay on points over the male-dominated classes"""
    points = male_df['points'].astype(float).to_numpy()
    pay = male_df['pay'].astype(float).to_numpy()
    if len(points) == 0:
        return PredictedPayLine(slope=0.0, intercept=0.0)
    if len(np.unique(points)) < 2:
        return PredictedPayLine(slope=0.0, intercept=float(pay.mean()))
    slope, intercept = np.polyfit(points, pay, 1)
    return PredictedPayLine(slope=float(slope), intercept=float(intercept))


def t_critical_value(degrees_of_freedom: int) -> float:
    """Critical value for the largest tabulated df not above the given df"""
    if degrees_of_freedom < 1:
        raise ValueError("degrees of freedom must be positive")
    if degrees_of_freedom > max(T_CRITICAL_VALUES):
        return T_CRITICAL_INFINITE
    return T_CRITICAL_VALUES[max(df for df in T_CRITICAL_VALUES if df <= degrees_of_freedom)]


def underpayment_ratio_test(male_diff: pd.Series, female_diff: pd.Series) -> UnderpaymentRatioTest:
    male_total = int(len(male_diff))
    female_total = int(len(female_diff))
    male_below = int((male_diff < 0).sum())
    female_below = int((female_diff < 0).sum())
    male_pct = male_below / male_total * 100 if male_total else 0.0
    female_pct = female_below / female_total * 100 if female_total else 0.0
    ratio = 1.0 if female_pct == 0 else male_pct / female_pct
    return UnderpaymentRatioTest(
        passed=ratio >= PASS_THRESHOLD,
        threshold=PASS_THRESHOLD,
        ratio=ratio,
        male_below=male_below,
        male_total=male_total,
        female_below=female_below,
        female_total=female_total,
        male_below_percent=male_pct,
        female_below_percent=female_pct,
    )


def t_test(male_diff: pd.Series, female_diff: pd.Series) -> Optional[TTestResult]:
    """Pooled two-sample t-test on differences from predicted pay"""
    n_m, n_f = len(male_diff), len(female_diff)
    if n_m < 2 or n_f < 2:
        return None
    male_mean = float(male_diff.mean())
    female_mean = float(female_diff.mean())
    df = n_m + n_f - 2
    pooled_var = ((n_m - 1) * float(male_diff.var(ddof=1)) +
                  (n_f - 1) * float(female_diff.var(ddof=1))) / df
    std_err = math.sqrt(pooled_var * (1 / n_m + 1 / n_f))
    gap = male_mean - female_mean
    if std_err == 0:
        t_value = 0.0 if gap == 0 else math.copysign(math.inf, gap)
    else:
        t_value = gap / std_err
    critical = t_critical_value(df)
    return TTestResult(
        passed=t_value <= critical,
        degrees_of_freedom=df,
        t_value=t_value,
        critical_value=critical,
        male_average_difference=male_mean,
        female_average_difference=female_mean,
    )


def salary_range_test(male_df: pd.DataFrame, female_df: pd.DataFrame) -> SalaryRangeTest:
    male_avg = float(male_df['years_to_max'].mean()) if len(male_df) else 0.0
    female_avg = float(female_df['years_to_max'].mean()) if len(female_df) else 0.0
    ratio = 1.0 if female_avg == 0 else male_avg / female_avg
    return SalaryRangeTest(
        passed=ratio >= PASS_THRESHOLD,
        threshold=PASS_THRESHOLD,
        ratio=ratio,
        male_average=male_avg,
        female_average=female_avg,
    )


def exceptional_service_test(male_df: pd.DataFrame, female_df: pd.DataFrame) -> ExceptionalServiceTest:
    male_pct = float(male_df['has_esp'].mean() * 100) if len(male_df) else 0.0
    female_pct = float(female_df['has_esp'].mean() * 100) if len(female_df) else 0.0
    if male_pct <= ESP_MINIMUM_MALE_PERCENT:
        ratio, passed = 0.0, True
    else:
        ratio = female_pct / male_pct
        passed = ratio >= PASS_THRESHOLD
    return ExceptionalServiceTest(
        passed=passed,
        threshold=PASS_THRESHOLD,
        ratio=ratio,
        male_percentage=male_pct,
        female_percentage=female_pct,
    )


def _job_results(df: pd.DataFrame, pay_line: Optional[PredictedPayLine]) -> List[JobResult]:
    results = []
    for _, row in df.iterrows():
        result = JobResult(
            job_number=int(row['job_number']),
            title=str(row['title']),
            classification=row['classification'],
            points=float(row['points']),
            pay=float(row['pay']),
        )
        if pay_line is not None:
            result.predicted_pay = float(pay_line.predict(row['points']))
            result.difference = result.pay - result.predicted_pay
            result.below_predicted = result.difference < 0
        results.append(result)
    return results


def analyze_compliance(jobs: Iterable[dict]) -> ComplianceResult:
    """Run every compliance test over a report's job classes"""
    df = jobs_frame(jobs)
    total = len(df)
    male_df = df[df['classification'] == 'male']
    female_df = df[df['classification'] == 'female']
    counts = dict(
        total_jobs=total,
        male_jobs=len(male_df),
        female_jobs=len(female_df),
        balanced_jobs=total - len(male_df) - len(female_df),
    )

    if total == 0:
        return ComplianceResult(
            is_compliant=False, requires_manual_review=True,
            message="No job classifications have been entered for this report.",
            **counts)

    if len(female_df) == 0:
        return ComplianceResult(
            is_compliant=True, requires_manual_review=False,
            message=("There are no female-dominated classes. The compliance tests do not "
                     "apply and the jurisdiction is in compliance."),
            job_results=_job_results(df, None), **counts)

    if len(male_df) < MIN_MALE_CLASSES:
        return ComplianceResult(
            is_compliant=False, requires_manual_review=True,
            message=(f"There are {len(male_df)} male-dominated classes. At least "
                     f"{MIN_MALE_CLASSES} are needed for the statistical analysis, so an "
                     "alternative analysis will be completed by staff."),
            job_results=_job_results(df, None), **counts)

    pay_line = fit_predicted_pay_line(male_df)
    male_diff = male_df['pay'] - pay_line.predict(male_df['points'].astype(float))
    female_diff = female_df['pay'] - pay_line.predict(female_df['points'].astype(float))

    underpayment = underpayment_ratio_test(male_diff, female_diff)
    ttest = t_test(male_diff, female_diff)
    statistical_passed = underpayment.passed or (ttest is not None and ttest.passed)
    salary_range = salary_range_test(male_df, female_df)
    esp = exceptional_service_test(male_df, female_df)

    failures = []
    if not statistical_passed:
        failures.append("statistical analysis")
    if not salary_range.passed:
        failures.append("salary range")
    if not esp.passed:
        failures.append("exceptional service pay")

    if failures:
        message = ("The jurisdiction did not pass the " + ", ".join(failures) +
                   (" test." if len(failures) == 1 else " tests."))
    elif underpayment.passed:
        message = "The jurisdiction passed all compliance tests."
    else:
        message = ("The underpayment ratio is below 80 percent, but the t-test shows the "
                   "difference is not statistically significant. The jurisdiction passed "
                   "all compliance tests.")

    logger.info(f"Compliance analysis: {counts}, failures={failures}")
    return ComplianceResult(
        is_compliant=not failures,
        requires_manual_review=False,
        message=message,
        pay_line=pay_line,
        underpayment_test=underpayment,
        t_test=ttest,
        statistical_test_passed=statistical_passed,
        salary_range_test=salary_range,
        exceptional_service_test=esp,
        job_results=_job_results(df, pay_line),
        **counts)


def compliance_status_label(result: ComplianceResult) -> str:
    if result.is_compliant:
        return 'IN COMPLIANCE'
    if result.requires_manual_review:
        return 'MANUAL REVIEW REQUIRED'
    return 'OUT OF COMPLIANCE'


def report_compliance_status(result: ComplianceResult) -> str:
    """Value stored on the report's compliance_status column"""
    if result.is_compliant:
        return 'In Compliance'
    if result.requires_manual_review:
        return 'Manual Review'
    return 'Out of Compliance'
