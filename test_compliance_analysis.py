"""Tests for the pay equity compliance calculations"""
import logging

import pandas as pd
import pytest

from compliance_analysis import (
    MIN_MALE_CLASSES, analyze_compliance, classify_job, comparison_pay, compliance_status_label,
    exceptional_service_test, fit_predicted_pay_line, has_exceptional_service_pay, jobs_frame,
    report_compliance_status, salary_range_test, t_critical_value, underpayment_ratio_test,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def make_job(number, males, females, points, max_salary, years_to_max=5, esp='', **extra):
    job = {
        'job_number': number,
        'title': f"Class {number}",
        'males': males,
        'females': females,
        'nonbinary': 0,
        'points': points,
        'min_salary': max_salary * 0.8,
        'max_salary': max_salary,
        'years_to_max': years_to_max,
        'exceptional_service_category': esp,
    }
    job.update(extra)
    return job


def male_classes(count=6, esp=''):
    # Pay alternates around 1000 + 10 * points so half of the classes fall below the line
    jobs = []
    for i in range(count):
        points = 100 * (i + 1)
        offset = 50 if i % 2 == 0 else -50
        jobs.append(make_job(i + 1, 10, 0, points, 1000 + 10 * points + offset, esp=esp))
    return jobs


def female_classes(offset, years_to_max=5, esp=''):
    return [
        make_job(101, 0, 10, 250, 1000 + 10 * 250 + offset, years_to_max=years_to_max, esp=esp),
        make_job(102, 1, 9, 450, 1000 + 10 * 450 + offset, years_to_max=years_to_max, esp=esp),
    ]


def test_classify_job_thresholds():
    assert classify_job({'males': 9, 'females': 1}) == 'male'
    assert classify_job({'males': 8, 'females': 2}) == 'balanced'
    assert classify_job({'males': 2, 'females': 8}) == 'female'
    assert classify_job({'males': 3, 'females': 7}) == 'balanced'
    assert classify_job({'males': 0, 'females': 0}) == 'balanced'


def test_classify_job_counts_nonbinary_in_total():
    assert classify_job({'males': 8, 'females': 0, 'nonbinary': 2}) == 'balanced'
    assert classify_job({'males': None, 'females': '5'}) == 'female'


def test_comparison_pay_adds_cash_compensation():
    assert comparison_pay({'max_salary': 4000, 'additional_cash_compensation': 250}) == 4250
    assert comparison_pay({'max_salary': None}) == 0


def test_exceptional_service_categories():
    assert has_exceptional_service_pay({'exceptional_service_category': 'Longevity'})
    assert not has_exceptional_service_pay({'exceptional_service_category': 'None'})
    assert not has_exceptional_service_pay({'exceptional_service_category': ' '})
    assert not has_exceptional_service_pay({})


def test_t_critical_value_lookup():
    assert t_critical_value(1) == 6.314
    assert t_critical_value(6) == 1.943
    # Between tabulated rows the smaller df is used
    assert t_critical_value(35) == 1.697
    assert t_critical_value(500) == 1.645
    with pytest.raises(ValueError):
        t_critical_value(0)


def test_no_jobs_requires_manual_review():
    result = analyze_compliance([])
    assert result.requires_manual_review
    assert not result.is_compliant
    assert result.total_jobs == 0
    assert compliance_status_label(result) == 'MANUAL REVIEW REQUIRED'


def test_no_female_classes_is_compliant():
    result = analyze_compliance(male_classes())
    assert result.is_compliant
    assert result.female_jobs == 0
    assert result.underpayment_test is None
    assert report_compliance_status(result) == 'In Compliance'


def test_too_few_male_classes_requires_manual_review():
    jobs = male_classes(MIN_MALE_CLASSES - 1) + female_classes(500)
    result = analyze_compliance(jobs)
    assert result.requires_manual_review
    assert result.pay_line is None
    assert result.male_jobs == MIN_MALE_CLASSES - 1
    assert report_compliance_status(result) == 'Manual Review'


def test_female_classes_above_line_pass():
    result = analyze_compliance(male_classes() + female_classes(500))
    logger.info(f"Compliant result: {result.message}")

    assert result.is_compliant
    assert result.underpayment_test.male_below == 3
    assert result.underpayment_test.female_below == 0
    assert result.underpayment_test.ratio == 1.0
    assert result.statistical_test_passed
    assert result.salary_range_test.passed
    assert result.exceptional_service_test.passed
    assert result.pay_line.slope == pytest.approx(10, abs=0.5)
    assert compliance_status_label(result) == 'IN COMPLIANCE'


def test_female_classes_below_line_fail():
    result = analyze_compliance(male_classes() + female_classes(-500))

    assert not result.is_compliant
    assert not result.requires_manual_review
    assert result.underpayment_test.female_below == 2
    assert result.underpayment_test.ratio == pytest.approx(0.5)
    assert not result.underpayment_test.passed
    assert result.t_test is not None
    assert result.t_test.degrees_of_freedom == 6
    assert result.t_test.t_value > result.t_test.critical_value
    assert not result.statistical_test_passed
    assert "statistical analysis" in result.message
    assert compliance_status_label(result) == 'OUT OF COMPLIANCE'


def test_salary_range_failure():
    result = analyze_compliance(male_classes() + female_classes(500, years_to_max=10))
    assert result.salary_range_test.ratio == pytest.approx(0.5)
    assert not result.salary_range_test.passed
    assert not result.is_compliant
    assert "salary range" in result.message


def test_exceptional_service_needs_male_share_above_minimum():
    df = jobs_frame(male_classes() + female_classes(500))
    male_df = df[df['classification'] == 'male']
    female_df = df[df['classification'] == 'female']

    test = exceptional_service_test(male_df, female_df)
    assert test.passed
    assert test.ratio == 0.0


def test_exceptional_service_failure():
    jobs = male_classes(esp='Longevity') + female_classes(500)
    result = analyze_compliance(jobs)
    assert result.exceptional_service_test.male_percentage == 100.0
    assert result.exceptional_service_test.female_percentage == 0.0
    assert not result.exceptional_service_test.passed
    assert not result.is_compliant


def test_job_results_carry_predicted_pay():
    result = analyze_compliance(male_classes() + female_classes(-500))
    female_results = [j for j in result.job_results if j.classification == 'female']
    assert len(female_results) == 2
    assert all(j.below_predicted for j in female_results)
    assert all(j.difference == pytest.approx(j.pay - j.predicted_pay) for j in female_results)


def split_frames(jobs):
    df = jobs_frame(jobs)
    return df[df['classification'] == 'male'], df[df['classification'] == 'female']


def test_t_test_passes_when_underpayment_ratio_fails():
    # Male classes sit 400 above and below the line at each point, female classes just under it
    jobs = []
    for i, points in enumerate([100, 100, 200, 200, 300, 300, 400, 400]):
        offset = 400 if i % 2 == 0 else -400
        jobs.append(make_job(i + 1, 10, 0, points, 1000 + 10 * points + offset))
    for i, points in enumerate([150, 250, 350, 450]):
        jobs.append(make_job(101 + i, 0, 10, points, 1000 + 10 * points - 5))

    result = analyze_compliance(jobs)
    assert result.underpayment_test.ratio == pytest.approx(0.5)
    assert not result.underpayment_test.passed
    assert result.t_test.passed
    assert result.statistical_test_passed
    assert result.is_compliant
    assert "not statistically significant" in result.message
    assert compliance_status_label(result) == 'IN COMPLIANCE'


def test_pay_line_is_flat_when_all_male_points_match():
    jobs = [make_job(i + 1, 10, 0, 200, pay) for i, pay in enumerate([3000, 3500, 4000])]
    male_df, _ = split_frames(jobs)

    line = fit_predicted_pay_line(male_df)
    assert line.slope == 0.0
    assert line.intercept == pytest.approx(3500)


def test_salary_range_passes_when_female_average_is_zero():
    male_df, female_df = split_frames(male_classes() + female_classes(500, years_to_max=0))

    test = salary_range_test(male_df, female_df)
    assert test.ratio == 1.0
    assert test.passed


def test_exceptional_service_ignored_at_twenty_percent_male_share():
    jobs = [make_job(i + 1, 10, 0, 100 * (i + 1), 3000, esp='Longevity' if i == 0 else '')
            for i in range(5)]
    jobs.append(make_job(101, 0, 10, 250, 3500))
    male_df, female_df = split_frames(jobs)

    test = exceptional_service_test(male_df, female_df)
    assert test.male_percentage == pytest.approx(20.0)
    assert test.ratio == 0.0
    assert test.passed


def test_exceptional_service_ratio_at_threshold_passes():
    jobs = [make_job(i + 1, 10, 0, 100 * (i + 1), 3000, esp='Longevity') for i in range(5)]
    jobs += [make_job(101 + i, 0, 10, 100 * (i + 1), 3000, esp='Longevity' if i < 4 else '')
             for i in range(5)]
    male_df, female_df = split_frames(jobs)

    test = exceptional_service_test(male_df, female_df)
    assert test.ratio == pytest.approx(0.8)
    assert test.passed


def test_underpayment_ratio_at_threshold_passes():
    test = underpayment_ratio_test(pd.Series([-1, -1, -1, -1, 1, 1, 1, 1, 1, 1]),
                                   pd.Series([-1, -1, -1, -1, -1, 1, 1, 1, 1, 1]))
    assert test.male_below_percent == pytest.approx(40.0)
    assert test.female_below_percent == pytest.approx(50.0)
    assert test.ratio == pytest.approx(0.8)
    assert test.passed
