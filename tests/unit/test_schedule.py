"""Unit tests for fee schedule generation"""

import pytest
from dataclasses import replace
from datetime import date
from decimal import Decimal
from fee_engine.domain.exceptions import InvalidFeeStructure, PlanNotSelected
from fee_engine.domain.models import FeeStructure, LineKind, PaymentPlan, Scholarship
from fee_engine.domain.schedule import build_schedule, waive_lines


def _scholarship(amount: str, additional: str = "0") -> Scholarship:
    return Scholarship(
        scholarship_id="sch_1",
        name="Merit",
        amount_percentage=Decimal(amount),
        additional_discount_percentage=Decimal(additional),
    )


def test_semester_wise_split_with_gst(fee_structure: FeeStructure):
    """Test two semesters of ₹60,000 + ₹10,800 GST each"""
    schedule = build_schedule(fee_structure, PaymentPlan.SEMESTER_WISE)

    assert len(schedule.semesters) == 2
    for line in schedule.semesters:
        assert line.kind == LineKind.SEMESTER
        assert line.base_amount_paise == 6_000_000
        assert line.gst_amount_paise == 1_080_000
        assert line.amount_payable_paise == 7_080_000

    assert schedule.overall_summary.total_amount_payable_paise == 14_160_000


def test_semester_wise_due_dates(fee_structure: FeeStructure):
    """Test semesters start six months apart from the program start"""
    schedule = build_schedule(fee_structure, PaymentPlan.SEMESTER_WISE)

    assert [line.due_date for line in schedule.semesters] == [date(2026, 1, 1), date(2026, 7, 1)]


def test_installment_wise_split(fee_structure: FeeStructure):
    """Test six installments of ₹20,000 + ₹3,600 GST each"""
    schedule = build_schedule(fee_structure, PaymentPlan.INSTALLMENT_WISE)

    assert len(schedule.semesters) == 6
    assert all(line.kind == LineKind.INSTALLMENT for line in schedule.semesters)
    assert all(line.base_amount_paise == 2_000_000 for line in schedule.semesters)
    assert all(line.gst_amount_paise == 360_000 for line in schedule.semesters)
    assert all(line.amount_payable_paise == 2_360_000 for line in schedule.semesters)
    assert [line.key for line in schedule.semesters] == ["1-1", "1-2", "1-3", "2-1", "2-2", "2-3"]


def test_installment_due_dates_spread_within_semester(fee_structure: FeeStructure):
    """Test installments are evenly spaced inside their semester"""
    schedule = build_schedule(fee_structure, PaymentPlan.INSTALLMENT_WISE)

    dates = [line.due_date for line in schedule.semesters]
    assert dates[:3] == [date(2026, 1, 1), date(2026, 3, 2), date(2026, 5, 1)]
    assert dates[3] == date(2026, 7, 1)
    assert dates == sorted(dates)


def test_one_shot_discount_applied_before_gst(fee_structure: FeeStructure):
    """Test one-shot discount reduces the taxable base"""
    fee_structure.one_shot_discount_percentage = Decimal("10")
    schedule = build_schedule(fee_structure, PaymentPlan.ONE_SHOT)

    assert len(schedule.semesters) == 1
    line = schedule.semesters[0]
    assert line.kind == LineKind.ONE_SHOT
    assert line.base_amount_paise == 12_000_000
    assert line.discount_amount_paise == 1_200_000
    assert line.gst_amount_paise == 1_944_000  # 18% of ₹1,08,000
    assert line.amount_payable_paise == 12_744_000
    assert line.due_date == date(2026, 1, 1)


def test_one_shot_discount_ignored_for_other_plans(fee_structure: FeeStructure):
    """Test discount only applies when paying in one shot"""
    fee_structure.one_shot_discount_percentage = Decimal("10")
    schedule = build_schedule(fee_structure, PaymentPlan.SEMESTER_WISE)

    assert all(line.discount_amount_paise == 0 for line in schedule.semesters)


def test_admission_fee_separate_line(fee_structure: FeeStructure):
    """Test admission fee is always its own line with GST added"""
    fee_structure.admission_fee_paise = 2_500_000
    schedule = build_schedule(fee_structure, PaymentPlan.SEMESTER_WISE)

    admission = schedule.admission_fee
    assert admission.kind == LineKind.ADMISSION_FEE
    assert admission.key == "admission"
    assert admission.gst_amount_paise == 450_000
    assert admission.amount_payable_paise == 2_950_000
    assert admission.due_date == date(2026, 1, 1)
    assert schedule.lines[0] is admission


def test_gst_inclusive_fee_extracts_base(fee_structure: FeeStructure):
    """Test GST-inclusive fees are backed out rather than added"""
    fee_structure.total_program_fee_paise = 11_800_000
    fee_structure.admission_fee_paise = 1_180_000
    fee_structure.program_fee_includes_gst = True
    schedule = build_schedule(fee_structure, PaymentPlan.SEMESTER_WISE)

    assert schedule.overall_summary.total_program_fee_paise == 10_000_000
    assert [line.base_amount_paise for line in schedule.semesters] == [5_000_000, 5_000_000]
    assert sum(line.amount_payable_paise for line in schedule.semesters) == 11_800_000

    assert schedule.admission_fee.base_amount_paise == 1_000_000
    assert schedule.admission_fee.gst_amount_paise == 180_000
    assert schedule.admission_fee.amount_payable_paise == 1_180_000


def test_scholarship_applied_after_gst(fee_structure: FeeStructure):
    """Test scholarship reduces payable but not GST"""
    schedule = build_schedule(
        fee_structure,
        PaymentPlan.SEMESTER_WISE,
        scholarship=_scholarship("10", additional="5"),
    )

    for line in schedule.semesters:
        assert line.gst_amount_paise == 1_080_000
        assert line.scholarship_amount_paise == 900_000  # 15% of ₹60,000
        assert line.amount_payable_paise == 6_180_000

    assert schedule.overall_summary.total_scholarship_paise == 1_800_000


def test_scholarship_capped_at_discounted_base(fee_structure: FeeStructure):
    """Test scholarship never eats into GST"""
    fee_structure.one_shot_discount_percentage = Decimal("20")
    schedule = build_schedule(fee_structure, PaymentPlan.ONE_SHOT, scholarship=_scholarship("100"))

    line = schedule.semesters[0]
    assert line.scholarship_amount_paise == 9_600_000
    assert line.amount_payable_paise == line.gst_amount_paise == 1_728_000


def test_equal_scholarship_distribution_sums_exactly():
    """Test equal distribution splits the total scholarship with last line absorbing remainder"""
    structure = FeeStructure(
        cohort_id="c1",
        total_program_fee_paise=10_000_000,
        admission_fee_paise=0,
        number_of_semesters=3,
        installments_per_semester=1,
        equal_scholarship_distribution=True,
        program_start_date=date(2026, 1, 1),
    )
    schedule = build_schedule(structure, PaymentPlan.SEMESTER_WISE, scholarship=_scholarship("10"))

    amounts = [line.scholarship_amount_paise for line in schedule.semesters]
    assert amounts == [333_333, 333_333, 333_334]
    assert sum(amounts) == 1_000_000


def test_rounding_remainder_absorbed_by_last_line():
    """Test uneven split keeps the base total exact"""
    structure = FeeStructure(
        cohort_id="c1",
        total_program_fee_paise=100,
        admission_fee_paise=0,
        number_of_semesters=3,
        installments_per_semester=1,
        program_start_date=date(2026, 1, 1),
    )
    schedule = build_schedule(structure, PaymentPlan.SEMESTER_WISE)

    assert [line.base_amount_paise for line in schedule.semesters] == [33, 33, 34]
    assert sum(line.base_amount_paise for line in schedule.semesters) == 100


def test_summary_matches_line_totals(fee_structure: FeeStructure):
    """Test overall summary equals the sum of its lines"""
    fee_structure.admission_fee_paise = 1_000_000
    schedule = build_schedule(fee_structure, PaymentPlan.INSTALLMENT_WISE, scholarship=_scholarship("25"))

    summary = schedule.overall_summary
    assert summary.total_base_paise == sum(l.base_amount_paise for l in schedule.lines)
    assert summary.total_gst_paise == sum(l.gst_amount_paise for l in schedule.lines)
    assert summary.total_amount_payable_paise == sum(l.amount_payable_paise for l in schedule.lines)
    assert summary.total_base_paise - schedule.admission_fee.base_amount_paise == 12_000_000


def test_by_semester_groups_lines(fee_structure: FeeStructure):
    """Test semester view totals"""
    schedule = build_schedule(fee_structure, PaymentPlan.INSTALLMENT_WISE)

    views = schedule.by_semester()
    assert [v.semester_number for v in views] == [1, 2]
    assert all(len(v.lines) == 3 for v in views)
    assert views[0].amount_payable_paise == 7_080_000


def test_custom_due_dates_override_defaults(fee_structure: FeeStructure):
    """Test custom dates replace defaults only for the slots they name"""
    fee_structure.custom_dates_enabled = True
    fee_structure.custom_due_dates = {"admission": date(2025, 12, 20), "1-2": date(2026, 2, 15)}
    schedule = build_schedule(fee_structure, PaymentPlan.INSTALLMENT_WISE)

    assert schedule.admission_fee.due_date == date(2025, 12, 20)
    assert schedule.semesters[1].due_date == date(2026, 2, 15)
    assert schedule.semesters[2].due_date == date(2026, 5, 1)


def test_custom_due_dates_ignored_when_disabled(fee_structure: FeeStructure):
    """Test stored custom dates have no effect unless enabled"""
    fee_structure.custom_due_dates = {"1-2": date(2026, 2, 15)}
    schedule = build_schedule(fee_structure, PaymentPlan.INSTALLMENT_WISE)

    assert schedule.semesters[1].due_date == date(2026, 3, 2)


def test_explicit_start_date_overrides_program_start(fee_structure: FeeStructure):
    schedule = build_schedule(fee_structure, PaymentPlan.SEMESTER_WISE, start_date=date(2026, 8, 1))

    assert schedule.semesters[0].due_date == date(2026, 8, 1)
    assert schedule.semesters[1].due_date == date(2027, 2, 1)


def test_plan_not_selected_raises(fee_structure: FeeStructure):
    with pytest.raises(PlanNotSelected):
        build_schedule(fee_structure, PaymentPlan.NOT_SELECTED)


@pytest.mark.parametrize(
    "changes",
    [
        {"number_of_semesters": 0},
        {"installments_per_semester": 0},
        {"total_program_fee_paise": -1},
        {"one_shot_discount_percentage": Decimal("150")},
    ],
)
def test_invalid_fee_structure_raises(fee_structure: FeeStructure, changes: dict):
    """Test out-of-range configuration is rejected"""
    with pytest.raises(InvalidFeeStructure):
        build_schedule(replace(fee_structure, **changes), PaymentPlan.SEMESTER_WISE)


def test_scholarship_over_100_percent_raises(fee_structure: FeeStructure):
    with pytest.raises(InvalidFeeStructure):
        build_schedule(fee_structure, PaymentPlan.SEMESTER_WISE, scholarship=_scholarship("80", additional="30"))


def test_waive_lines_flags_only_named_slots(fee_structure: FeeStructure):
    """Test waiving returns copies and leaves the schedule untouched"""
    schedule = build_schedule(fee_structure, PaymentPlan.INSTALLMENT_WISE)

    lines = waive_lines(schedule.lines, ["2-3", "admission"])

    assert [line.key for line in lines if line.waived] == ["admission", "2-3"]
    assert not any(line.waived for line in schedule.lines)


def _uneven_structure(**changes) -> FeeStructure:
    structure = FeeStructure(
        cohort_id="c1",
        total_program_fee_paise=100,
        admission_fee_paise=0,
        number_of_semesters=2,
        installments_per_semester=3,
        equal_scholarship_distribution=True,
        program_start_date=date(2026, 1, 1),
    )
    return replace(structure, **changes)


def test_full_equal_scholarship_covers_uneven_installments():
    """Test a 100% scholarship spread equally leaves only GST to pay"""
    schedule = build_schedule(_uneven_structure(), PaymentPlan.INSTALLMENT_WISE, scholarship=_scholarship("100"))

    assert [l.base_amount_paise for l in schedule.semesters] == [16, 16, 18, 16, 16, 18]
    assert [l.scholarship_amount_paise for l in schedule.semesters] == [16, 16, 18, 16, 16, 18]
    assert schedule.overall_summary.total_scholarship_paise == 100
    assert schedule.overall_summary.total_amount_payable_paise == schedule.overall_summary.total_gst_paise


def test_full_equal_scholarship_without_gst_leaves_nothing_payable():
    schedule = build_schedule(
        _uneven_structure(),
        PaymentPlan.INSTALLMENT_WISE,
        scholarship=_scholarship("100"),
        gst_rate=Decimal("0"),
    )

    assert schedule.overall_summary.total_amount_payable_paise == 0


SCHEDULE_CASES = [
    pytest.param(
        {"total_program_fee_paise": 1_000_003, "number_of_semesters": 3, "installments_per_semester": 2},
        PaymentPlan.INSTALLMENT_WISE,
        None,
        id="uneven-installments",
    ),
    pytest.param(
        {"total_program_fee_paise": 999_999, "number_of_semesters": 4},
        PaymentPlan.SEMESTER_WISE,
        _scholarship("12.5"),
        id="uneven-semesters-scholarship",
    ),
    pytest.param(
        {"total_program_fee_paise": 11_800_001, "admission_fee_paise": 1_180_003, "program_fee_includes_gst": True},
        PaymentPlan.INSTALLMENT_WISE,
        _scholarship("30", additional="5"),
        id="gst-inclusive",
    ),
    pytest.param(
        {"total_program_fee_paise": 7_654_321, "one_shot_discount_percentage": Decimal("7.5")},
        PaymentPlan.ONE_SHOT,
        _scholarship("20"),
        id="one-shot-discount",
    ),
    pytest.param(
        {"total_program_fee_paise": 5_000_017, "number_of_semesters": 3, "equal_scholarship_distribution": True},
        PaymentPlan.INSTALLMENT_WISE,
        _scholarship("45"),
        id="equal-distribution",
    ),
]


@pytest.mark.parametrize("changes,plan,scholarship", SCHEDULE_CASES)
def test_schedule_is_deterministic_and_reconciles(fee_structure: FeeStructure, changes: dict, plan, scholarship):
    """Test identical inputs give identical schedules whose lines reconcile"""
    structure = replace(fee_structure, **changes)

    schedule = build_schedule(structure, plan, scholarship=scholarship)

    assert schedule == build_schedule(structure, plan, scholarship=scholarship)
    for line in schedule.lines:
        assert line.amount_payable_paise == (
            line.base_amount_paise - line.discount_amount_paise - line.scholarship_amount_paise + line.gst_amount_paise
        )
    assert sum(l.base_amount_paise for l in schedule.semesters) == schedule.overall_summary.total_program_fee_paise
