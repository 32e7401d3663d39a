"""Fee catalog schemas: categories, fee items, fee structures."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from schoolfees.core.enums import AcademicTerm, FeeType


# --- Fee Category ---
class FeeCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    fee_type: FeeType
    description: Optional[str] = None


class FeeCategoryResponse(BaseModel):
    id: str
    name: str
    fee_type: FeeType
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# --- Fee Item ---
class FeeItem(BaseModel):
    """One line of a fee structure. Category name and type are copied, not referenced."""

    category_id: str
    category_name: str
    fee_type: FeeType = FeeType.other
    amount: Decimal = Field(..., ge=0)
    is_mandatory: bool
    is_optional: Optional[bool] = None

    @model_validator(mode="after")
    def _mandatory_xor_optional(self) -> "FeeItem":
        if self.is_optional is None:
            self.is_optional = not self.is_mandatory
        if self.is_mandatory == self.is_optional:
            raise ValueError(
                f"Fee item {self.category_id} must be either mandatory or optional"
            )
        return self


# --- Fee Structure ---
class FeeStructureCreate(BaseModel):
    class_id: str = Field(..., min_length=1)
    class_name: Optional[str] = None
    academic_year: str = Field(..., min_length=1, description="e.g. 2025/2026")
    term: AcademicTerm
    fee_items: List[FeeItem]


class FeeStructureUpdate(BaseModel):
    class_name: Optional[str] = None
    fee_items: Optional[List[FeeItem]] = None
    is_active: Optional[bool] = None


class FeeStructureClone(BaseModel):
    target_class_id: str = Field(..., min_length=1)
    target_class_name: Optional[str] = None
    target_academic_year: str = Field(..., min_length=1)
    target_term: AcademicTerm


class FeeStructureResponse(BaseModel):
    id: str
    class_id: str
    class_name: Optional[str] = None
    academic_year: str
    term: AcademicTerm
    fee_items: List[FeeItem]
    total_amount: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @property
    def mandatory_items(self) -> List[FeeItem]:
        return [i for i in self.fee_items if i.is_mandatory]

    @property
    def optional_items(self) -> List[FeeItem]:
        return [i for i in self.fee_items if not i.is_mandatory]


class FeeStructureUpdateResponse(FeeStructureResponse):
    """Returned after an edit; assigned_student_count > 0 means reconciliation is due."""

    assigned_student_count: int = 0
