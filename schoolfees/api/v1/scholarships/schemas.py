"""Scholarship schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from schoolfees.core.enums import (
    AcademicTerm,
    FeeType,
    ScholarshipApplicability,
    ScholarshipStatus,
    ScholarshipType,
)


class ScholarshipCreate(BaseModel):
    """Creation payload. Rejects the malformed values the calculator would otherwise zero out."""

    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    scholarship_type: ScholarshipType
    percentage_off: Optional[Decimal] = None
    fixed_amount_off: Optional[Decimal] = None
    max_discount_per_student: Optional[Decimal] = Field(None, ge=0)
    applicable_to: ScholarshipApplicability = ScholarshipApplicability.all
    class_ids: Optional[List[str]] = None
    student_ids: Optional[List[str]] = None
    applicable_to_fee_types: Optional[List[FeeType]] = None
    excluded_fee_types: Optional[List[FeeType]] = None
    start_date: date
    end_date: Optional[date] = None
    academic_year: Optional[str] = None
    terms: Optional[List[AcademicTerm]] = None
    max_beneficiaries: Optional[int] = None
    current_beneficiaries: int = Field(0, ge=0)
    status: ScholarshipStatus = ScholarshipStatus.active

    @model_validator(mode="after")
    def _check_rules(self) -> "ScholarshipCreate":
        if self.scholarship_type == ScholarshipType.percentage:
            if self.percentage_off is None:
                raise ValueError("percentage_off is required for percentage type")
            if not Decimal("0") <= self.percentage_off <= Decimal("100"):
                raise ValueError("percentage_off must be between 0 and 100")
        if self.scholarship_type == ScholarshipType.fixed_amount:
            if self.fixed_amount_off is None:
                raise ValueError("fixed_amount_off is required for fixed_amount type")
            if self.fixed_amount_off <= 0:
                raise ValueError("fixed_amount_off must be greater than 0")
        if self.applicable_to == ScholarshipApplicability.specific_classes and not self.class_ids:
            raise ValueError("class_ids cannot be empty for specific_classes")
        if self.applicable_to == ScholarshipApplicability.specific_students and not self.student_ids:
            raise ValueError("student_ids cannot be empty for specific_students")
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        if self.max_beneficiaries is not None:
            if self.max_beneficiaries < 1:
                raise ValueError("max_beneficiaries must be at least 1")
            if self.current_beneficiaries > self.max_beneficiaries:
                raise ValueError("current_beneficiaries cannot exceed max_beneficiaries")
        return self


class ScholarshipResponse(BaseModel):
    """
    Stored scholarship as seen by the fee engine. Numeric fields are not range-checked
    here: records written before validation existed still load, and the calculator
    treats negative or missing values as zero.
    """

    id: str
    name: str
    description: Optional[str] = None
    scholarship_type: ScholarshipType
    percentage_off: Optional[Decimal] = None
    fixed_amount_off: Optional[Decimal] = None
    max_discount_per_student: Optional[Decimal] = None
    applicable_to: ScholarshipApplicability = ScholarshipApplicability.all
    class_ids: Optional[List[str]] = None
    student_ids: Optional[List[str]] = None
    applicable_to_fee_types: Optional[List[FeeType]] = None
    excluded_fee_types: Optional[List[FeeType]] = None
    start_date: date
    end_date: Optional[date] = None
    academic_year: Optional[str] = None
    terms: Optional[List[AcademicTerm]] = None
    max_beneficiaries: Optional[int] = None
    current_beneficiaries: int = 0
    status: ScholarshipStatus = ScholarshipStatus.active
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
