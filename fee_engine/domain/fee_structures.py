"""Fee structure validation and selection"""

from decimal import Decimal
from typing import Iterable, Optional

from fee_engine.domain.exceptions import FeeStructureNotFound, InvalidFeeStructure
from fee_engine.domain.models import FeeStructure, Scholarship, StructureType
from fee_engine.utils.money import to_decimal


def _check_percentage(name: str, value) -> None:
    pct = to_decimal(value)
    if pct < 0 or pct > 100:
        raise InvalidFeeStructure(f"{name} must be between 0 and 100, got {pct}")


def validate_fee_structure(fee_structure: FeeStructure) -> None:
    """Raise InvalidFeeStructure if any field is out of range"""
    if fee_structure.number_of_semesters < 1:
        raise InvalidFeeStructure(
            f"number_of_semesters must be at least 1, got {fee_structure.number_of_semesters}"
        )
    if fee_structure.installments_per_semester < 1:
        raise InvalidFeeStructure(
            f"installments_per_semester must be at least 1, got {fee_structure.installments_per_semester}"
        )
    if fee_structure.total_program_fee_paise < 0:
        raise InvalidFeeStructure("total_program_fee cannot be negative")
    if fee_structure.admission_fee_paise < 0:
        raise InvalidFeeStructure("admission_fee cannot be negative")

    _check_percentage("one_shot_discount_percentage", fee_structure.one_shot_discount_percentage)


def validate_scholarship(scholarship: Scholarship) -> None:
    _check_percentage("amount_percentage", scholarship.amount_percentage)
    _check_percentage("additional_discount_percentage", scholarship.additional_discount_percentage)
    _check_percentage("scholarship total percentage", scholarship.total_percentage)
    _check_percentage("start_percentage", scholarship.start_percentage)
    _check_percentage("end_percentage", scholarship.end_percentage)

    if to_decimal(scholarship.start_percentage) > to_decimal(scholarship.end_percentage):
        raise InvalidFeeStructure(
            f"Scholarship band start {scholarship.start_percentage} exceeds end {scholarship.end_percentage}"
        )


def select_fee_structure(structures: Iterable[FeeStructure], student_id: Optional[str] = None) -> FeeStructure:
    """
    Pick the fee structure that applies to a student.

    A student's CUSTOM structure takes precedence over the cohort-wide one.
    """
    cohort_structure = None
    for structure in structures:
        if (
            structure.structure_type == StructureType.CUSTOM
            and student_id is not None
            and structure.student_id == student_id
        ):
            return structure
        if structure.structure_type == StructureType.COHORT and cohort_structure is None:
            cohort_structure = structure

    if cohort_structure is None:
        raise FeeStructureNotFound(f"No fee structure found for student {student_id}")
    return cohort_structure


def find_scholarship_for_score(scholarships: Iterable[Scholarship], score) -> Optional[Scholarship]:
    """
    Return the scholarship whose percentile band contains the score.

    Bands are half-open [start, end), except that a band ending at 100
    also includes 100.
    """
    value = to_decimal(score)
    for scholarship in scholarships:
        start = to_decimal(scholarship.start_percentage)
        end = to_decimal(scholarship.end_percentage)
        if start <= value < end or (value == end == Decimal("100")):
            return scholarship
    return None
